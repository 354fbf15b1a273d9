"""Tests for execution and PDR record builders."""

import json

import pytest

from publish_reports.contracts import ExecutionStatus, WorkflowMessage
from publish_reports.errors import InvalidExecutionContext, InvalidPdrRecord
from publish_reports.records import (
    BuildStatus,
    build_execution_record,
    build_pdr_record,
    execution_arn,
    try_build,
)

STATE_MACHINE = "arn:aws:states:us-east-1:111122223333:stateMachine:HelloWorld-StateMachine"
NOW = 1600000060000


def _message(data: dict, status=ExecutionStatus.RUNNING) -> WorkflowMessage:
    message = WorkflowMessage.model_validate(data)
    message.execution_status = status
    return message


def test_execution_arn_matches_engine_format():
    expected = (
        "arn:aws:states:us-east-1:111122223333:execution:"
        "HelloWorld-StateMachine:exec-123"
    )
    assert execution_arn(STATE_MACHINE, "exec-123") == expected
    assert execution_arn(STATE_MACHINE, "exec-123") == expected


def test_execution_arn_requires_both_parts():
    assert execution_arn(None, "exec-123") is None
    assert execution_arn(STATE_MACHINE, "") is None


def test_build_execution_record(cumulus_message):
    cumulus_message["cumulus_meta"].update(
        execution_name="exec-123",
        parentExecutionArn="arn:aws:states:us-east-1:111122223333:execution:Parent:p-1",
        asyncOperationId="op-1",
    )
    cumulus_message["meta"]["workflow_tasks"] = {"SyncGranule": {"name": "sync"}}

    record = build_execution_record(_message(cumulus_message), region="us-west-2", now=NOW)

    assert record.name == "exec-123"
    assert record.arn.endswith(":execution:HelloWorld-StateMachine:exec-123")
    assert record.execution == (
        "https://console.aws.amazon.com/states/home?region=us-west-2"
        f"#/executions/details/{record.arn}"
    )
    assert record.status == "running"
    assert record.workflow_name == "DiscoverGranules"
    assert record.async_operation_id == "op-1"
    assert record.parent_arn.endswith(":p-1")
    assert record.original_payload == cumulus_message["payload"]
    assert record.final_payload is None
    assert record.created_at == 1600000000000
    assert record.duration == 60
    assert record.record_id == record.arn


def test_execution_record_optional_references_absent(cumulus_message):
    cumulus_message["meta"] = {}
    cumulus_message["cumulus_meta"].pop("workflow_start_time")

    record = build_execution_record(_message(cumulus_message), now=NOW)

    assert record.collection_id is None
    assert record.async_operation_id is None
    assert record.parent_arn is None
    assert record.created_at is None
    assert record.duration is None

    wire = json.loads(record.to_json())
    assert wire["parentArn"] is None
    assert wire["collectionId"] is None
    assert wire["asyncOperationId"] is None
    assert "type" not in wire


def test_execution_record_wire_format_uses_camel_case(cumulus_message):
    record = build_execution_record(
        _message(cumulus_message, ExecutionStatus.ABORTED), now=NOW
    )

    wire = json.loads(record.to_json())

    assert wire["status"] == "failed"
    assert wire["type"] == "DiscoverGranules"
    assert wire["collectionId"] == "MOD09GQ___006"
    assert wire["finalPayload"] == cumulus_message["payload"]
    assert wire["updatedAt"] == NOW


@pytest.mark.parametrize(
    "exception, expected",
    [
        (None, {}),
        ({"Error": "TaskFailed", "Cause": "boom"}, {"Error": "TaskFailed", "Cause": "boom"}),
        ("boom", {"Error": "Unknown Error", "Cause": "boom"}),
        ({"reason": 1}, {"Error": "Unknown Error", "Cause": '{"reason": 1}'}),
    ],
)
def test_execution_record_parses_exception(cumulus_message, exception, expected):
    cumulus_message["exception"] = exception

    record = build_execution_record(_message(cumulus_message), now=NOW)

    assert record.error == expected


@pytest.mark.parametrize("missing", ["execution_name", "state_machine"])
def test_execution_record_requires_execution_context(cumulus_message, missing):
    del cumulus_message["cumulus_meta"][missing]

    with pytest.raises(InvalidExecutionContext):
        build_execution_record(_message(cumulus_message))


@pytest.mark.parametrize(
    "field, value",
    [
        ("execution_name", 123),
        ("state_machine", ["arn"]),
        ("parentExecutionArn", {"arn": "x"}),
        ("asyncOperationId", 7),
    ],
)
def test_execution_record_rejects_non_string_context(cumulus_message, field, value):
    cumulus_message["cumulus_meta"][field] = value

    with pytest.raises(InvalidExecutionContext):
        build_execution_record(_message(cumulus_message))


@pytest.mark.parametrize(
    "start_time, expected",
    [
        ("1600000000000", 1600000000000),
        ("2020-09-13T12:26:40Z", None),
        (True, None),
        ({"ms": 1}, None),
    ],
)
def test_execution_record_reads_start_time_leniently(
    cumulus_message, start_time, expected
):
    cumulus_message["cumulus_meta"]["workflow_start_time"] = start_time

    record = build_execution_record(_message(cumulus_message), now=NOW)

    assert record.created_at == expected


def test_build_pdr_record(cumulus_message, pdr_name):
    cumulus_message["payload"].update(
        running=["a"], completed=["b", "c"], failed=["d"]
    )

    record = build_pdr_record(_message(cumulus_message), now=NOW)

    assert record.pdr_name == pdr_name
    assert record.provider == "s3_provider"
    assert record.collection_id == "MOD09GQ___006"
    assert record.status == "running"
    assert record.stats.model_dump() == {
        "processing": 1,
        "completed": 2,
        "failed": 1,
        "total": 4,
    }
    assert record.progress == 75
    assert record.pan_sent is False
    assert record.pan_message == "N/A"
    assert ":execution:HelloWorld-StateMachine:" in record.execution
    assert record.duration == 60


def test_pdr_record_progress_complete_when_nothing_processing(cumulus_message):
    cumulus_message["payload"]["completed"] = ["a", "b"]

    record = build_pdr_record(_message(cumulus_message), now=NOW)

    assert record.progress == 100


def test_pdr_record_wire_format(cumulus_message, pdr_name):
    cumulus_message["payload"]["pdr"].update(PANSent=True, PANmessage="OK")

    wire = json.loads(build_pdr_record(_message(cumulus_message), now=NOW).to_json())

    assert wire["pdrName"] == pdr_name
    assert wire["PANSent"] is True
    assert wire["PANmessage"] == "OK"
    assert wire["stats"]["total"] == 0


def test_pdr_record_absent_without_pdr(cumulus_message):
    del cumulus_message["payload"]["pdr"]

    assert build_pdr_record(_message(cumulus_message)) is None


@pytest.mark.parametrize("payload", [None, "text", [1, 2]])
def test_pdr_record_absent_for_non_object_payload(cumulus_message, payload):
    cumulus_message["payload"] = payload

    assert build_pdr_record(_message(cumulus_message)) is None


@pytest.mark.parametrize("pdr", [{}, {"name": ""}, {"name": None}, "PDR1"])
def test_pdr_record_rejects_malformed_pdr(cumulus_message, pdr):
    cumulus_message["payload"]["pdr"] = pdr

    with pytest.raises(InvalidPdrRecord):
        build_pdr_record(_message(cumulus_message))


def test_try_build_classifies_results(cumulus_message):
    message = _message(cumulus_message)

    assert try_build(lambda: build_pdr_record(message)).status is BuildStatus.BUILT
    assert try_build(lambda: None).status is BuildStatus.NOT_APPLICABLE

    failed = try_build(lambda: build_pdr_record(_message({"payload": {"pdr": {}}})))
    assert failed.status is BuildStatus.FAILED
    assert isinstance(failed.error, InvalidPdrRecord)


def test_try_build_captures_unexpected_errors():
    def broken():
        raise KeyError("boom")

    result = try_build(broken)

    assert result.status is BuildStatus.FAILED
    assert isinstance(result.error, KeyError)
