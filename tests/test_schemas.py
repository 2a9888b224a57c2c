from crudkit.schemas import BaseModelSchema, PagedSearchResultSchema, paged_result_schema
from crudkit.utils.model_utils import PagedSearchResult, paged_filter_search
from tests.models import Person, PersonFilter, PersonSchema


def test_paged_result_uses_original_json_keys(people):
    result = paged_filter_search(Person, 2, 10, 'age', 'asc', PersonFilter())

    dumped = paged_result_schema(PersonSchema).dump(result)

    assert dumped['total_data'] == 25
    assert dumped['rows'] == 10
    assert dumped['current_page'] == 2
    assert dumped['last_page'] == 3
    assert dumped['from'] == 11
    assert dumped['to'] == 20
    assert [row['age'] for row in dumped['data']] == list(range(11, 21))
    assert 'from_index' not in dumped


def test_default_schema_dumps_base_fields(make_person):
    person = make_person(name='Ada')
    result = PagedSearchResult(
        total_data=1,
        rows=25,
        current_page=1,
        last_page=1,
        from_index=1,
        to_index=25,
        data=[person],
    )

    dumped = PagedSearchResultSchema().dump(result)

    assert dumped['data'][0]['id'] == person.id
    assert set(dumped['data'][0]) == {'id', 'created_time', 'updated_time'}


def test_base_model_schema_and_to_dict_agree(make_person):
    person = make_person(name='Ada', age=36)

    dumped = BaseModelSchema().dump(person)
    as_dict = person.to_dict()

    assert dumped['id'] == as_dict['id']
    assert as_dict['name'] == 'Ada'
    assert as_dict['email'] is None
    assert isinstance(as_dict['created_time'], str)
