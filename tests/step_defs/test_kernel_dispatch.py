"""
Step definitions for the kernel dispatch feature.

These tests drive the kernel only through wire requests, the way a generated
proxy would:
- construct / invoke / static invoke / get / set
- identity-preserving handles
- reentrant callbacks from native code
- error responses for unknown handles, members and native failures
"""

import json

import pytest
from pytest_bdd import given, parsers, scenarios, then, when

from jsii_kernel.kernel.schema import BYREF_TAG

scenarios("../features/kernel_dispatch.feature")


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def test_context():
    """Shared context for passing data between steps."""
    return {
        "engine": None,
        "response": None,
        "handle": None,
        "remembered": {},
    }


def _send(test_context, payload):
    response = test_context["engine"].dispatch(payload)
    test_context["response"] = response
    result = response.get("result")
    if isinstance(result, dict) and BYREF_TAG in result and payload["api"] == "create":
        test_context["handle"] = result[BYREF_TAG]
    return response


# =============================================================================
# Given Steps
# =============================================================================


@given(parsers.parse('a kernel with module "{name}" loaded'))
def kernel_with_module(test_context, engine, calc_path, name):
    response = engine.dispatch({"api": "load", "name": name, "locator": calc_path})
    assert response == {"result": None}
    test_context["engine"] = engine


# =============================================================================
# When Steps
# =============================================================================


@when(parsers.parse('I request create "{fqn}" with args {args}'))
def request_create(test_context, fqn, args):
    _send(test_context, {"api": "create", "fqn": fqn, "args": json.loads(args)})


@when(parsers.parse('I invoke "{method}" on the handle with args {args}'))
def invoke_on_handle(test_context, method, args):
    _send(test_context, {
        "api": "invoke",
        "objref": {BYREF_TAG: test_context["handle"]},
        "method": method,
        "args": json.loads(args),
    })


@when(parsers.parse('I invoke "{method}" on handle "{handle}" with args {args}'))
def invoke_on_named_handle(test_context, method, handle, args):
    _send(test_context, {"api": "invoke", "objref": handle, "method": method, "args": json.loads(args)})


@when(parsers.parse('I request sinvoke "{fqn}" method "{method}" with args {args}'))
def request_sinvoke(test_context, fqn, method, args):
    _send(test_context, {"api": "sinvoke", "fqn": fqn, "method": method, "args": json.loads(args)})


@when(parsers.parse('I set property "{prop}" on the handle to {value:d}'))
def set_property(test_context, prop, value):
    response = _send(test_context, {
        "api": "set", "objref": test_context["handle"], "property": prop, "value": value,
    })
    assert response == {"result": None}


@when(parsers.parse('I get property "{prop}" on the handle'))
def get_property(test_context, prop):
    _send(test_context, {"api": "get", "objref": test_context["handle"], "property": prop})


@when(parsers.parse('I remember the handle as "{alias}"'))
def remember_handle(test_context, alias):
    test_context["remembered"][alias] = test_context["handle"]


@when(parsers.parse('I invoke "{method}" on the handle with the remembered "{alias}" and {n:d}'))
def invoke_with_remembered(test_context, method, alias, n):
    ref = {BYREF_TAG: test_context["remembered"][alias]}
    _send(test_context, {
        "api": "invoke", "objref": test_context["handle"], "method": method, "args": [ref, n],
    })


# =============================================================================
# Then Steps
# =============================================================================


@then("the response carries an object handle")
def response_has_handle(test_context):
    result = test_context["response"]["result"]
    assert set(result) == {BYREF_TAG}
    assert isinstance(result[BYREF_TAG], str)


@then(parsers.re(r"the result is (?P<value>-?\d+)$"), converters={"value": int})
def result_is(test_context, value):
    assert test_context["response"] == {"result": value}


@then("the result is the same handle")
def result_is_same_handle(test_context):
    assert test_context["response"] == {"result": {BYREF_TAG: test_context["handle"]}}


@then(parsers.parse("the nested result is {value:d}"))
def nested_result_is(test_context, value):
    assert test_context["response"]["result"]["nested"] == value


@then(parsers.parse('the nested call used the remembered "{alias}" handle'))
def nested_used_remembered(test_context, alias):
    handle = test_context["response"]["result"]["handle"]
    assert handle == {BYREF_TAG: test_context["remembered"][alias]}


@then(parsers.parse('the error is "{name}"'))
def error_is(test_context, name):
    response = test_context["response"]
    assert "result" not in response
    assert response["error"]["name"] == name


@then(parsers.parse('the error message mentions "{first}" and "{second}"'))
def error_mentions(test_context, first, second):
    message = test_context["response"]["error"]["message"]
    assert first in message
    assert second in message


@then("the error carries a stack trace")
def error_has_stack(test_context):
    stack = test_context["response"]["error"]["stack"]
    assert "ValueError: boom" in stack
