from attendsync.core.exceptions import AppError, ConflictError, ForbiddenError, InvalidInputError, NotFoundError


def test_status_codes():
    assert AppError("boom").status_code == 500
    assert InvalidInputError("bad").status_code == 400
    assert ForbiddenError("no").status_code == 403
    assert NotFoundError("Batch", "b1").status_code == 404
    assert ConflictError("dup").status_code == 409


def test_not_found_message_and_details():
    error = NotFoundError("Batch", "b1")

    assert error.message == "Batch with id b1 not found"
    assert error.details == {"resource_type": "Batch", "resource_id": "b1"}
    assert NotFoundError("Batch", "b1", message="Batch not found").message == "Batch not found"


def test_details_default_to_empty_dict():
    assert ConflictError("dup").details == {}
    assert str(InvalidInputError("bad time")) == "bad time"
