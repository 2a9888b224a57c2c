from marshmallow import Schema, fields

from crudkit.extensions import ma


class BaseModelSchema(ma.Schema):
    """Fields shared by every record."""

    id = fields.Integer(dump_only=True)
    created_time = fields.DateTime(dump_only=True)
    updated_time = fields.DateTime(dump_only=True)


class PagedSearchResultSchema(ma.Schema):
    total_data = fields.Integer()
    rows = fields.Integer()
    current_page = fields.Integer()
    last_page = fields.Integer()
    from_index = fields.Integer(data_key="from")
    to_index = fields.Integer(data_key="to")
    data = fields.Nested(BaseModelSchema, many=True)


def paged_result_schema(record_schema: type[Schema]) -> PagedSearchResultSchema:
    """Paged result schema whose ``data`` rows are dumped with ``record_schema``."""

    schema_cls = type(
        f"Paged{record_schema.__name__}",
        (PagedSearchResultSchema,),
        {"data": fields.Nested(record_schema, many=True)},
    )
    return schema_cls()
