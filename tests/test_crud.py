import pytest
from sqlalchemy.exc import SQLAlchemyError

from crudkit.errors import PersistenceError, RecordNotFoundError
from crudkit.extensions import db
from crudkit.utils.model_utils import (
    create_record,
    delete_record,
    find_by_id,
    is_new_record,
    save_record,
)
from tests.models import Person, count_people


class TestIsNewRecord:

    def test_transient_without_id_is_new(self, app):
        assert is_new_record(Person(name='Ada'))

    def test_transient_with_id_is_not_new(self, app):
        assert not is_new_record(Person(id=42, name='Ada'))

    def test_persisted_record_is_not_new(self, make_person):
        assert not is_new_record(make_person())


class TestCreateRecord:

    def test_inserts_and_assigns_identifier(self, app):
        person = create_record(Person(name='Ada Lovelace', status='A', age=36))

        assert person.id is not None
        assert person.created_time is not None
        assert person.updated_time is not None
        assert count_people() == 1

    def test_existing_record_is_not_inserted_twice(self, make_person):
        person = make_person()

        returned = create_record(person)

        assert returned is person
        assert count_people() == 1

    def test_detached_record_with_identity_is_not_inserted(self, make_person):
        person = make_person()
        db.session.expunge(person)

        create_record(person)

        assert count_people() == 1

    def test_insert_failure_rolls_back_and_raises(self, app):
        with pytest.raises(PersistenceError) as excinfo:
            create_record(Person(name=None))

        assert excinfo.value.operation == 'create'
        assert excinfo.value.model == 'Person'
        assert isinstance(excinfo.value.__cause__, SQLAlchemyError)
        assert count_people() == 0


class TestSaveRecord:

    def test_persists_changed_fields(self, make_person):
        person = make_person(name='Before')
        person_id = person.id
        person.name = 'After'
        person.age = 41

        save_record(person)
        db.session.remove()

        reloaded = db.session.get(Person, person_id)
        assert reloaded.name == 'After'
        assert reloaded.age == 41

    def test_detached_record_is_merged(self, make_person):
        person = make_person(name='Before')
        person_id = person.id
        db.session.expunge(person)
        person.status = 'Z'

        saved = save_record(person)

        assert saved.id == person_id
        db.session.remove()
        assert db.session.get(Person, person_id).status == 'Z'

    def test_new_record_is_a_silent_no_op(self, app):
        person = Person(name='Never created')

        returned = save_record(person)

        assert returned is person
        assert person.id is None
        assert count_people() == 0

    def test_save_failure_rolls_back_and_raises(self, make_person):
        person = make_person(name='Kept')
        person_id = person.id
        person.name = None

        with pytest.raises(PersistenceError) as excinfo:
            save_record(person)

        assert excinfo.value.operation == 'save'
        db.session.remove()
        assert db.session.get(Person, person_id).name == 'Kept'


class TestDeleteRecord:

    def test_removes_row(self, make_person):
        person = make_person()

        delete_record(person)

        assert count_people() == 0

    def test_detached_record_is_deleted(self, make_person):
        person = make_person()
        db.session.expunge(person)

        delete_record(person)

        assert count_people() == 0

    def test_failed_delete_leaves_row_untouched(self, make_person, monkeypatch):
        person = make_person(name='Survivor', age=50)
        person_id = person.id
        session = db.session()

        def failing_flush(*args, **kwargs):
            raise SQLAlchemyError('disk full')

        monkeypatch.setattr(session, 'flush', failing_flush)
        with pytest.raises(PersistenceError) as excinfo:
            delete_record(person)
        monkeypatch.undo()

        assert excinfo.value.operation == 'delete'
        db.session.remove()
        survivor = db.session.get(Person, person_id)
        assert survivor is not None
        assert survivor.name == 'Survivor'
        assert survivor.age == 50

    def test_new_record_cannot_be_deleted(self, make_person):
        make_person()

        with pytest.raises(PersistenceError, match='no identity'):
            delete_record(Person(name='Ghost'))
        assert count_people() == 1


class TestFindById:

    def test_loads_matching_row(self, make_person):
        make_person(name='First')
        second = make_person(name='Second')

        found = find_by_id(Person, second.id)

        assert found.id == second.id
        assert found.name == 'Second'

    def test_missing_row_raises_not_found(self, app):
        with pytest.raises(RecordNotFoundError) as excinfo:
            find_by_id(Person, 999)

        assert isinstance(excinfo.value, PersistenceError)
        assert excinfo.value.operation == 'find_by_id'
