"""Tests for the provider seam: client construction and error classification."""

from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError, ProfileNotFound

from awsum_ilb.config import AWSConfig
from awsum_ilb.exceptions import ConfigError, ProviderAPIError
from awsum_ilb.provider import (
    ProviderOutcome,
    build_clients,
    classify_error,
    invoke,
    paginate,
)


def _client_error(code: str, operation: str = "SomeOperation") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": f"{code} happened"}}, operation)


def _paginator(pages):
    paginator = MagicMock()
    paginator.paginate.return_value = iter(pages)
    return paginator


class TestBuildClients:
    def test_default_credential_chain(self):
        with patch("boto3.Session") as MockSession:
            session = MagicMock()
            MockSession.return_value = session
            clients = build_clients(AWSConfig())
            MockSession.assert_called_once_with()
            assert [c.args[0] for c in session.client.call_args_list] == ["ec2", "elbv2", "acm", "route53"]
            assert clients.ec2 is session.client.return_value

    def test_region_and_profile(self):
        with patch("boto3.Session") as MockSession:
            MockSession.return_value = MagicMock()
            build_clients(AWSConfig(region="eu-west-1", credential_profile="ops"))
            MockSession.assert_called_once_with(region_name="eu-west-1", profile_name="ops")

    def test_unknown_profile_is_config_error(self):
        with patch("boto3.Session", side_effect=ProfileNotFound(profile="ghost")):
            with pytest.raises(ConfigError, match="ghost"):
                build_clients(AWSConfig(credential_profile="ghost"))


class TestClassifyError:
    def test_duplicate_rule_is_conflict(self):
        outcome = classify_error(_client_error("InvalidPermission.Duplicate"))
        assert outcome is ProviderOutcome.DUPLICATE_RULE
        assert outcome.is_conflict
        assert not outcome.is_not_found

    def test_target_group_not_found(self):
        outcome = classify_error(_client_error("TargetGroupNotFound"))
        assert outcome is ProviderOutcome.TARGET_GROUP_NOT_FOUND
        assert outcome.is_not_found

    def test_unrecognized_code(self):
        assert classify_error(_client_error("Throttling")) is None

    def test_message_text_is_not_inspected(self):
        exc = ClientError({"Error": {"Code": "ValidationError", "Message": "rule already exists"}}, "Op")
        assert classify_error(exc) is None

    def test_non_client_error(self):
        assert classify_error(ValueError("nope")) is None


class TestInvoke:
    def test_success_returns_response(self):
        operation = MagicMock(return_value={"GroupId": "sg-1"})
        result = invoke(operation, GroupName="x")
        assert result.ok
        assert result.response == {"GroupId": "sg-1"}
        operation.assert_called_once_with(GroupName="x")

    def test_tolerated_outcome_is_tagged(self):
        operation = MagicMock(side_effect=_client_error("InvalidPermission.Duplicate"))
        result = invoke(operation, tolerate=[ProviderOutcome.DUPLICATE_RULE], GroupId="sg-1")
        assert not result.ok
        assert result.outcome is ProviderOutcome.DUPLICATE_RULE
        assert result.response == {}

    def test_recognized_but_not_tolerated_raises(self):
        operation = MagicMock(side_effect=_client_error("InvalidPermission.Duplicate"))
        with pytest.raises(ProviderAPIError) as excinfo:
            invoke(operation, GroupId="sg-1")
        assert excinfo.value.code == "InvalidPermission.Duplicate"

    def test_other_client_error_raises(self):
        operation = MagicMock(side_effect=_client_error("UnauthorizedOperation"))
        with pytest.raises(ProviderAPIError) as excinfo:
            invoke(operation, tolerate=[ProviderOutcome.DUPLICATE_RULE])
        assert excinfo.value.code == "UnauthorizedOperation"

    def test_botocore_error_raises(self):
        operation = MagicMock(side_effect=EndpointConnectionError(endpoint_url="https://ec2"))
        with pytest.raises(ProviderAPIError) as excinfo:
            invoke(operation)
        assert excinfo.value.code is None


class TestPaginate:
    def test_collects_all_pages(self):
        client = MagicMock()
        client.get_paginator.return_value = _paginator([{"Items": [1, 2]}, {"Items": [3]}, {}])
        assert paginate(client, "list_things", "Items", Filter="x") == [1, 2, 3]
        client.get_paginator.assert_called_once_with("list_things")
        client.get_paginator.return_value.paginate.assert_called_once_with(Filter="x")

    def test_tolerated_not_found_yields_empty(self):
        client = MagicMock()
        paginator = MagicMock()
        paginator.paginate.side_effect = _client_error("LoadBalancerNotFound")
        client.get_paginator.return_value = paginator
        result = paginate(
            client, "describe_load_balancers", "LoadBalancers",
            tolerate=[ProviderOutcome.LOAD_BALANCER_NOT_FOUND], Names=["x"],
        )
        assert result == []

    def test_error_is_wrapped_with_operation(self):
        client = MagicMock()
        paginator = MagicMock()
        paginator.paginate.side_effect = _client_error("AccessDenied")
        client.get_paginator.return_value = paginator
        with pytest.raises(ProviderAPIError) as excinfo:
            paginate(client, "describe_instances", "Reservations")
        assert excinfo.value.operation == "describe_instances"
        assert excinfo.value.code == "AccessDenied"
