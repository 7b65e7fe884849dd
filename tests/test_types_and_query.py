import pytest
from google.cloud import firestore

from unifydb.errors import NoSQLError, ValidationError
from unifydb.query import Operator, OrderBy, QueryBuilder, WhereCondition, to_condition, to_orders
from unifydb.types import InsertResult, OperationResult
from unifydb.utils import validate_collection_path, validate_document_path


class TestOperationResult:
    def test_ok_unwraps(self):
        assert OperationResult.ok([1, 2]).unwrap() == [1, 2]

    def test_fail_unwrap_raises_captured_error(self):
        error = KeyError("missing")
        with pytest.raises(KeyError):
            OperationResult.fail(error, "lookup failed").unwrap()

    def test_fail_without_error_raises_nosql_error(self):
        with pytest.raises(NoSQLError, match="nothing stored"):
            OperationResult(success=False, message="nothing stored").unwrap()

    def test_to_dict_omits_absent_keys(self):
        assert OperationResult.ok(message="Connected to MongoDB").to_dict() == {
            "success": True,
            "message": "Connected to MongoDB",
        }
        assert OperationResult.fail(ValueError("bad"), "Error").to_dict() == {
            "success": False,
            "error": "bad",
            "message": "Error",
        }

    def test_to_dict_renders_result_dataclasses(self):
        result = OperationResult.ok(InsertResult(inserted_id="abc", acknowledged=True))
        assert result.to_dict() == {
            "success": True,
            "data": {"inserted_id": "abc", "acknowledged": True},
        }

    def test_falsy_data_is_kept(self):
        assert OperationResult.ok(0).to_dict() == {"success": True, "data": 0}


class TestQueryNormalization:
    def test_tuple_condition(self):
        assert to_condition(("tags", "array-contains", "x")) == WhereCondition(
            "tags", Operator.ARRAY_CONTAINS, "x"
        )

    def test_condition_passthrough(self):
        condition = WhereCondition("age", Operator.GT, 3)
        assert to_condition(condition) is condition

    def test_bad_condition_shape(self):
        with pytest.raises(ValidationError):
            to_condition(("age", ">"))

    @pytest.mark.parametrize(
        "order_by, expected",
        [
            (None, []),
            ("name", [OrderBy("name")]),
            (("age", "desc"), [OrderBy("age", "desc")]),
            ([("age", "desc"), "name"], [OrderBy("age", "desc"), OrderBy("name")]),
            (OrderBy("city"), [OrderBy("city")]),
        ],
    )
    def test_order_forms(self, order_by, expected):
        assert to_orders(order_by) == expected

    def test_list_pair_is_rejected(self):
        with pytest.raises(ValidationError, match="tuple"):
            to_orders(["age", "desc"])

    def test_bad_direction(self):
        with pytest.raises(ValidationError):
            to_orders(("age", "sideways"))

    def test_firestore_direction(self):
        assert OrderBy("a").firestore_direction == firestore.Query.ASCENDING
        assert OrderBy("a", "desc").firestore_direction == firestore.Query.DESCENDING

    def test_unbound_builder_cannot_run(self):
        with pytest.raises(ValidationError):
            QueryBuilder("users").where("a", "==", 1).get()


class TestPaths:
    @pytest.mark.parametrize("path", ["users/u1", "/users/u1/", "users/u1/orders/o1"])
    def test_document_paths(self, path):
        assert validate_document_path(path) == path.strip("/")

    @pytest.mark.parametrize("path", ["users", "users/u1/orders", "", "users//u1"])
    def test_invalid_document_paths(self, path):
        with pytest.raises(ValidationError):
            validate_document_path(path)

    @pytest.mark.parametrize("path", ["users/u1", "a//b/c", "/"])
    def test_invalid_collection_paths(self, path):
        with pytest.raises(ValidationError):
            validate_collection_path(path)
