"""
JSON Schema export tests.

Exported documents feed client generation, so their shape and the
contract hash must be stable.
"""

import re

from api.contracts import (
    Contract,
    ContractGroup,
    array,
    contract_document,
    contract_hash,
    date,
    datetime_,
    describe,
    export_group,
    integer,
    nullable,
    object_schema,
    one_of,
    optional,
    string,
    to_json_schema,
)
from api.contracts.export import JSON_SCHEMA_DIALECT


class TestToJsonSchema:
    """Tests for to_json_schema()"""

    def test_closed_object(self, person_schema):
        assert to_json_schema(person_schema) == {
            "type": "object",
            "properties": {
                "name": {"type": "string"},
                "age": {"type": "number"},
            },
            "required": ["name", "age"],
            "additionalProperties": False,
        }

    def test_open_object(self, open_person_schema):
        assert to_json_schema(open_person_schema)["additionalProperties"] is True

    def test_optional_field_not_required(self):
        schema = object_schema({"name": string(), "email": optional(string())})
        assert to_json_schema(schema)["required"] == ["name"]

    def test_array(self):
        assert to_json_schema(array(integer())) == {
            "type": "array",
            "items": {"type": "integer"},
        }

    def test_date_formats(self):
        assert to_json_schema(date()) == {"type": "string", "format": "date"}
        assert to_json_schema(datetime_()) == {"type": "string", "format": "date-time"}

    def test_nullable_enum(self):
        schema = nullable(one_of(string(), ["member", "admin"]))
        assert to_json_schema(schema) == {
            "type": ["string", "null"],
            "enum": ["member", "admin", None],
        }

    def test_description(self):
        assert to_json_schema(describe(string(), "Full name")) == {
            "type": "string",
            "description": "Full name",
        }


class TestContractDocument:
    """Tests for contract_document() and contract_hash()"""

    def test_document_header(self, person_schema):
        contract = Contract("Person", person_schema, "people", description="A person")
        document = contract_document(contract)
        assert document["$schema"] == JSON_SCHEMA_DIALECT
        assert document["title"] == "Person"
        assert document["description"] == "A person"
        assert document["type"] == "object"

    def test_hash_format(self, person_schema):
        value = contract_hash(Contract("Person", person_schema, "people", version=2))
        assert re.fullmatch(r"Person:v2:[0-9a-f]{12}", value)

    def test_hash_is_stable(self, person_schema):
        rebuilt = object_schema({"name": string(), "age": integer()})
        first = Contract("Person", person_schema, "people")
        assert contract_hash(first) == contract_hash(Contract("Person", person_schema, "other"))
        assert contract_hash(first) != contract_hash(Contract("Person", rebuilt, "people"))

    def test_hash_covers_coerce(self, person_schema):
        strict = Contract("Person", person_schema, "people")
        lenient = Contract("Person", person_schema, "people", coerce=True)
        assert contract_hash(strict) != contract_hash(lenient)


class TestExportGroup:
    """Tests for export_group()"""

    def test_export_shape(self, person_schema):
        group = ContractGroup("people", {
            "Person": Contract("Person", person_schema, "people", version=3),
        })
        exported = export_group(group)

        assert exported["exportName"] == "people"
        entry = exported["contracts"]["Person"]
        assert entry["version"] == 3
        assert entry["coerce"] is False
        assert entry["contractHash"].startswith("Person:v3:")
        assert entry["schema"]["title"] == "Person"

    def test_registry_merge_exports(self, registry, person_schema):
        registry.register("requests", "CreatePerson", person_schema)
        registry.register("responses", "PersonCreated", object_schema({"id": integer()}))
        exported = export_group(registry.merge("requests", "responses", export_name="people"))
        assert exported["exportName"] == "people"
        assert sorted(exported["contracts"]) == ["CreatePerson", "PersonCreated"]
