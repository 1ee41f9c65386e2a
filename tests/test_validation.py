"""
Validation decorator — rejection before business logic, normalization
visible to the implementation, and the supported schema shapes.
"""
import pytest
from pydantic import BaseModel, Field, TypeAdapter

from servicekit import ValidationError, decorate_with_validators, service_method
from servicekit.errors import BadRequestError
from servicekit.validation import run_schema, with_validation


class ChargeArgs(BaseModel):
    amount: int
    currency: str = "USD"


class Recorder:
    """Async implementation that records every call it receives."""

    def __init__(self) -> None:
        self.calls: list[tuple] = []

    async def __call__(self, *args, **kwargs):
        self.calls.append((args, kwargs))
        return args, kwargs


def _charge(recorder: Recorder):
    @service_method(schema=ChargeArgs)
    async def charge(amount, currency="USD"):
        return await recorder(amount, currency)

    return charge


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_coerced_values_reach_implementation():
    recorder = Recorder()
    charge = with_validation(_charge(recorder), "charge")

    await charge("10")

    (args, _), = recorder.calls
    assert args == (10, "USD")
    assert isinstance(args[0], int)


@pytest.mark.asyncio
async def test_keyword_arguments_are_validated_too():
    recorder = Recorder()
    charge = with_validation(_charge(recorder), "charge")

    await charge(amount="7", currency="EUR")

    assert recorder.calls == [((7, "EUR"), {})]


@pytest.mark.asyncio
async def test_undeclared_keywords_pass_through_unvalidated():
    received = {}

    @service_method(schema=ChargeArgs)
    async def charge(amount, currency="USD", *, idempotency_key=None):
        received.update(amount=amount, key=idempotency_key)

    await with_validation(charge, "charge")("3", idempotency_key="k-1")
    assert received == {"amount": 3, "key": "k-1"}


@pytest.mark.asyncio
async def test_schema_omitting_a_parameter_leaves_callee_default():
    class OnlyB(BaseModel):
        b: int

    @service_method(schema=OnlyB)
    async def f(a=None, b=0):
        return a, b

    assert await with_validation(f, "f")("ignored", "5") == (None, 5)


# ---------------------------------------------------------------------------
# Rejection
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_missing_required_field_never_reaches_implementation():
    recorder = Recorder()
    charge = with_validation(_charge(recorder), "charge")

    with pytest.raises(ValidationError) as exc_info:
        await charge()

    assert recorder.calls == []
    err = exc_info.value
    assert isinstance(err, BadRequestError)
    assert err.http_status == 400
    assert err.details[0]["field"] == "amount"
    assert err.details[0]["type"] == "missing"
    assert "amount" in str(err)


@pytest.mark.asyncio
async def test_wrong_type_is_rejected_with_field_detail():
    recorder = Recorder()
    charge = with_validation(_charge(recorder), "charge")

    with pytest.raises(ValidationError) as exc_info:
        await charge({})

    assert recorder.calls == []
    assert [d["field"] for d in exc_info.value.details] == ["amount"]


# ---------------------------------------------------------------------------
# Schema shapes
# ---------------------------------------------------------------------------

def test_run_schema_with_type_adapter():
    adapter = TypeAdapter(dict[str, int])
    assert run_schema(adapter, {"n": "4"}) == {"n": 4}


def test_run_schema_with_callable():
    def upper(values):
        return {k: v.upper() for k, v in values.items()}

    assert run_schema(upper, {"code": "abc"}) == {"code": "ABC"}


def test_run_schema_callable_value_error_becomes_validation_error():
    def reject(values):
        raise ValueError("code must be numeric")

    with pytest.raises(ValidationError, match="code must be numeric"):
        run_schema(reject, {"code": "abc"}, "lookup")


def test_run_schema_requires_a_mapping():
    with pytest.raises(TypeError):
        run_schema(lambda values: [1, 2], {}, "broken")


def test_constraints_are_enforced():
    class Page(BaseModel):
        page: int = Field(ge=1)

    with pytest.raises(ValidationError) as exc_info:
        run_schema(Page, {"page": "0"})
    assert exc_info.value.details[0]["type"] == "greater_than_equal"


# ---------------------------------------------------------------------------
# Table-level
# ---------------------------------------------------------------------------

def test_methods_without_schema_are_untouched():
    async def ping():
        return "pong"

    recorder = Recorder()
    charge = _charge(recorder)
    service = {"ping": ping, "charge": charge, "VERSION": "1"}

    decorated = decorate_with_validators(service)

    assert decorated["ping"] is ping
    assert decorated["charge"] is not charge
    assert decorated["VERSION"] == "1"
    assert service["charge"] is charge


@pytest.mark.asyncio
async def test_validators_are_not_applied_twice():
    runs = []

    def counting_schema(values):
        runs.append(values)
        return {"amount": int(values["amount"])}

    @service_method(schema=counting_schema)
    async def refund(amount):
        return amount

    once = decorate_with_validators({"refund": refund})
    twice = decorate_with_validators(once)

    assert twice["refund"] is once["refund"]
    assert await twice["refund"]("4") == 4
    assert len(runs) == 1
