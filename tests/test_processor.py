import pytest

from botocore.stub import Stubber

import mock_aws_env
from ctlib.arn import MalformedIdentifier, parse_key_arn
from ctlib.aws.utility import AssumeRole
from ctlib.cfnresponse import ChangeRequest, RequestType
from ctlib.processor import TopicEncryptionProcessor
from ctlib.results import AccountError, ErrorKind, ResponseStatus


current_account = "123456789012"
other_account = "111111111111"
# account which is not enrolled to Control Tower
foreign_account = "999999999999"


class Members(object):
    """ Membership gate with fixed list of governed accounts """
    def __init__(self, accounts):
        self.accounts = set(accounts)
        self.calls = []

    def is_member(self, account_id):
        self.calls.append(account_id)
        return account_id in self.accounts


class Broker(AssumeRole):
    """ Role broker which records requested sessions and denies access to some accounts """
    def __init__(self, context, denied=()):
        super().__init__(context)
        self.denied = set(denied)
        self.calls = []

    def get_session(self, account_id):
        self.calls.append(account_id)
        if account_id in self.denied:
            raise AccountError(ErrorKind.AccessDenied, f"Unable to assume role in {account_id}")
        return super().get_session(account_id)


def processor(context, members=(current_account, other_account), denied=()):
    return TopicEncryptionProcessor(context,
                                    membership=Members(members),
                                    broker=Broker(context, denied))


def env(account_id, region, keys=None, topic=True):
    """ :return: dict with created key ARNs and topic ARN """
    created = mock_aws_env.create_keys(keys or {"key": {}}, account_id, region)
    arns = {name: props["Arn"] for name, props in created.items()}
    if topic:
        arns["topic"] = mock_aws_env.create_topic(account_id, region)
    return arns


def test_nothing_to_do(aws, context):
    proc = processor(context)
    report = proc.run(ChangeRequest(RequestType.Create, []))
    assert report.targets == 0
    assert report.success_count == 0
    assert report.status == ResponseStatus.SUCCESS
    assert report.as_response_data() == {"SuccessCount": 0, "ProcessedTopics": []}
    assert proc.membership.calls == []


def test_create(aws, context):
    arns = env(current_account, "us-east-1")
    proc = processor(context)
    report = proc.run(ChangeRequest(RequestType.Create, [arns["key"]]))
    assert report.status == ResponseStatus.SUCCESS
    assert report.success_count == 1
    assert report.processed_topics == [f"Updated: {arns['topic']}"]
    assert report.errors == []
    assert mock_aws_env.topic_kms_key(current_account, "us-east-1") == arns["key"]


def test_create_is_idempotent(aws, context):
    arns = env(current_account, "us-east-1")
    request = ChangeRequest(RequestType.Create, [arns["key"]])
    first = processor(context).run(request)
    second = processor(context).run(request)
    assert first.as_response_data() == second.as_response_data()
    assert mock_aws_env.topic_kms_key(current_account, "us-east-1") == arns["key"]


def test_not_member_is_skipped(aws, context):
    key_arn = f"arn:aws:kms:us-east-1:{foreign_account}:key/abc"
    proc = processor(context)
    report = proc.run(ChangeRequest(RequestType.Create, [key_arn]))
    assert proc.membership.calls == [foreign_account]
    # nothing else is called for accounts out of Control Tower
    assert proc.broker.calls == []
    assert report.skipped == [foreign_account]
    assert report.errors == []
    assert report.success_count == 0
    assert report.status == ResponseStatus.FAILED


def test_partial_failure_is_success(aws, context):
    good = env(current_account, "us-east-1")
    bad = env(current_account, "eu-west-1", keys={"disabled": {"Enabled": False}})
    report = processor(context).run(ChangeRequest(RequestType.Create, [bad["disabled"], good["key"]]))
    assert report.status == ResponseStatus.SUCCESS
    assert report.success_count == 1
    assert report.processed_topics == [f"Updated: {good['topic']}"]
    assert report.errors == [f"KMS validation failed for {current_account}: KMS key {bad['disabled']} is disabled"]
    assert report.as_response_data()["Errors"] == report.errors
    assert mock_aws_env.topic_kms_key(current_account, "eu-west-1") == ""


def test_all_failed(aws, context):
    arns = env(current_account, "us-east-1", topic=False)
    report = processor(context).run(ChangeRequest(RequestType.Create, [arns["key"]]))
    assert report.status == ResponseStatus.FAILED
    assert report.success_count == 0
    assert len(report.errors) == 1
    assert report.errors[0].startswith(f"SNS validation failed for {current_account}: Error validating SNS topic:")


def test_access_denied_does_not_stop_others(aws, context):
    good = env(current_account, "us-east-1")
    denied_key = f"arn:aws:kms:us-east-1:{other_account}:key/abc"
    proc = processor(context, denied=[other_account])
    report = proc.run(ChangeRequest(RequestType.Create, [denied_key, good["key"]]))
    assert proc.broker.calls == [other_account, current_account]
    assert report.status == ResponseStatus.SUCCESS
    assert report.errors == [f"Error updating account {other_account}: Unable to assume role in {other_account}"]
    assert report.processed_topics == [f"Updated: {good['topic']}"]


def test_update_removes_dropped_pairs(aws, context):
    east = env(current_account, "us-east-1", keys={"old": {}, "new": {}})
    west = env(current_account, "eu-west-1")
    processor(context).run(ChangeRequest(RequestType.Create, [east["old"], west["key"]]))
    assert mock_aws_env.topic_kms_key(current_account, "eu-west-1") == west["key"]

    report = processor(context).run(ChangeRequest(RequestType.Update,
                                                  key_ids=[east["new"]],
                                                  old_key_ids=[east["old"], west["key"]]))
    # updates go first, then removals
    assert report.processed_topics == [f"Updated: {east['topic']}", f"Removed: {west['topic']}"]
    assert report.success_count == 2
    assert mock_aws_env.topic_kms_key(current_account, "us-east-1") == east["new"]
    assert mock_aws_env.topic_kms_key(current_account, "eu-west-1") == ""


def test_update_without_old_properties(aws, context):
    arns = env(current_account, "us-east-1")
    report = processor(context).run(ChangeRequest(RequestType.Update, [arns["key"]], old_key_ids=None))
    assert report.processed_topics == [f"Updated: {arns['topic']}"]


@pytest.mark.parametrize("old_key_ids", [None, []])
def test_delete(aws, context, old_key_ids):
    arns = env(current_account, "us-east-1")
    processor(context).run(ChangeRequest(RequestType.Create, [arns["key"]]))

    # CloudFormation sends current properties only on delete
    report = processor(context).run(ChangeRequest(RequestType.Delete, [arns["key"], arns["key"]],
                                                  old_key_ids=old_key_ids))
    if old_key_ids is None:
        assert report.targets == 1
        assert report.processed_topics == [f"Removed: {arns['topic']}"]
        assert mock_aws_env.topic_kms_key(current_account, "us-east-1") == ""
    else:
        assert report.targets == 0
        assert report.status == ResponseStatus.SUCCESS


def test_removal_of_missing_topic_fails(aws, context):
    key_arn = f"arn:aws:kms:us-east-1:{current_account}:key/abc"
    report = processor(context).run(ChangeRequest(RequestType.Delete, [key_arn]))
    assert report.status == ResponseStatus.FAILED
    assert len(report.errors) == 1
    assert report.errors[0].startswith(f"Failed to remove KMS for {current_account}:")


def test_malformed_aborts_before_processing(aws, context):
    good = f"arn:aws:kms:us-east-1:{current_account}:key/abc"
    proc = processor(context)
    with pytest.raises(MalformedIdentifier):
        proc.run(ChangeRequest(RequestType.Create, [good, "arn:aws:kms:us-east-1"]))
    assert proc.membership.calls == []
    assert proc.broker.calls == []


def test_unexpected_error_is_not_downgraded(aws, context):
    class Broken(Members):
        def is_member(self, account_id):
            raise RuntimeError("boom")

    proc = TopicEncryptionProcessor(context, membership=Broken([]), broker=Broker(context))
    with pytest.raises(RuntimeError):
        proc.run(ChangeRequest(RequestType.Create, [f"arn:aws:kms:us-east-1:{current_account}:key/abc"]))


def test_cross_account(aws, context):
    arns = env(other_account, "us-east-1")
    proc = processor(context)
    report = proc.run(ChangeRequest(RequestType.Create, [arns["key"]]))
    assert proc.broker.calls == [other_account]
    assert report.processed_topics == [f"Updated: {arns['topic']}"]
    assert mock_aws_env.topic_kms_key(other_account, "us-east-1") == arns["key"]


@pytest.mark.parametrize("request_type,old_key_ids", [(RequestType.Create, None), (RequestType.Delete, None)])
def test_caller_identity_failure_is_access_denied(aws, context, request_type, old_key_ids):
    key = f"arn:aws:kms:us-east-1:{other_account}:key/abc"
    proc = processor(context)
    with Stubber(proc.broker.sts) as stubber:
        stubber.add_client_error("get_caller_identity", service_error_code="AccessDenied", http_status_code=403)
        report = proc.run(ChangeRequest(request_type, [key], old_key_ids))
    assert report.status == ResponseStatus.FAILED
    assert len(report.errors) == 1
    assert "Unable to get caller identity" in report.errors[0]
    assert proc.broker.calls == [other_account]


def test_caller_identity_failure_outcome_kind(aws, context):
    ref = parse_key_arn(f"arn:aws:kms:us-east-1:{other_account}:key/abc")
    proc = processor(context)
    with Stubber(proc.broker.sts) as stubber:
        stubber.add_client_error("get_caller_identity", service_error_code="AccessDenied", http_status_code=403)
        outcome = proc.process_update(ref)
    assert outcome.error == ErrorKind.AccessDenied
    assert outcome.message.startswith(f"Error updating account {other_account}: Unable to get caller identity")
