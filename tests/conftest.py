import pytest

from crudkit import create_app
from crudkit.extensions import db
from tests.models import Person


@pytest.fixture
def app():
    """Create application for testing."""
    app = create_app('testing')

    with app.app_context():
        # Create all tables
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def make_person(app):
    """Insert a person directly, bypassing the helpers under test."""
    def _make_person(name='John Smith', status='A', age=30, email=None):
        person = Person(name=name, status=status, age=age, email=email)
        db.session.add(person)
        db.session.commit()
        return person
    return _make_person


@pytest.fixture
def people(app):
    """25 people aged 1..25, alternating status A/B/C."""
    statuses = ['A', 'B', 'C']
    rows = [
        Person(name=f'Person {i:02d}', status=statuses[i % 3], age=i)
        for i in range(1, 26)
    ]
    db.session.add_all(rows)
    db.session.commit()
    return rows