from botocore.exceptions import BotoCoreError, ClientError

from ctlib.aws.cloudformation import StackSetMembership
from ctlib.aws.kms import KMSKeyValidator
from ctlib.aws.sns import SNSTopic
from ctlib.aws.utility import AssumeRole
from ctlib.cfnresponse import RequestType
from ctlib.reconcile import plan_delete, plan_updates
from ctlib.results import AccountError, ErrorKind, Outcome, Report
from ctlib.utility import timeit


class TopicEncryptionProcessor(object):
    """
    Drives reconciliation of Control Tower security topics encryption:
    plan -> (membership -> role -> validation -> mutation) for each account -> report.
    Accounts are processed one by one, failure in one account does not stop others.
    """
    def __init__(self, context, membership=None, broker=None):
        """
        :param context: `RunContext` instance
        :param membership: `StackSetMembership` instance, created from context if omitted
        :param broker: `AssumeRole` instance, created from context if omitted
        """
        self.context = context
        self.log = context.log
        self.membership = membership if membership is not None else StackSetMembership(context)
        self.broker = broker if broker is not None else AssumeRole(context)

    def plan(self, request):
        """
        :param request: `ChangeRequest`

        :return: `ReconciliationPlan`

        :raises MalformedIdentifier: if any KMS key ARN in request can't be parsed
        """
        if request.request_type == RequestType.Delete:
            # for delete, remove KMS from all accounts
            previous = request.old_key_ids if request.old_key_ids is not None else request.key_ids
            return plan_delete(previous)
        if request.request_type == RequestType.Update:
            return plan_updates(request.key_ids, request.old_key_ids or [])
        return plan_updates(request.key_ids, [])

    def topic(self, session, target):
        return SNSTopic(session, self.context, target.account_id, target.region,
                        partition=self.broker.current_partition())

    @timeit
    def process_update(self, ref):
        """
        Set `ref.key_id` as KMS key of the topic in `ref` account/region.

        :param ref: `KeyReference`

        :return: `Outcome`
        """
        account_id = ref.account_id
        self.log.info(f'Updating KMS for account {account_id} in region {ref.region} with key {ref.key_id}')
        try:
            if not self.membership.is_member(account_id):
                self.log.info(f"Skipping account {account_id} - not in Control Tower StackSet")
                return Outcome.skipped(ref, f"Account {account_id} is not in Control Tower StackSet")

            session = self.broker.get_session(account_id)

            try:
                KMSKeyValidator(session, self.context).validate(ref.region, ref.key_id)
            except AccountError as err:
                return self.failed(ref, err.kind, f"KMS validation failed for {account_id}: {err.message}")

            topic = self.topic(session, ref)
            try:
                topic.validate()
            except AccountError as err:
                return self.failed(ref, err.kind, f"SNS validation failed for {account_id}: {err.message}")

            topic_arn = topic.set_kms_key(ref.key_id)
        except AccountError as err:
            return self.failed(ref, err.kind, f"Error updating account {account_id}: {err.message}")
        except (ClientError, BotoCoreError) as err:
            return self.failed(ref, ErrorKind.MutationFailed, f"Error updating account {account_id}: {err}")

        return Outcome.success(ref, f"Updated: {topic_arn}", topic_arn)

    @timeit
    def process_removal(self, target):
        """
        Remove KMS encryption from the topic in `target` account/region.

        :param target: `AccountRegion`

        :return: `Outcome`
        """
        account_id = target.account_id
        self.log.info(f'Removing KMS for account {account_id} in region {target.region}')
        try:
            if not self.membership.is_member(account_id):
                self.log.info(f"Skipping account {account_id} - not in Control Tower StackSet")
                return Outcome.skipped(target, f"Account {account_id} is not in Control Tower StackSet")

            session = self.broker.get_session(account_id)

            topic = self.topic(session, target)
            try:
                topic_arn = topic.clear_kms_key()
            except AccountError as err:
                return self.failed(target, err.kind, f"Failed to remove KMS for {account_id}: {err.message}")
        except AccountError as err:
            return self.failed(target, err.kind, f"Error removing KMS for account {account_id}: {err.message}")
        except (ClientError, BotoCoreError) as err:
            return self.failed(target, ErrorKind.MutationFailed,
                               f"Error removing KMS for account {account_id}: {err}")

        return Outcome.success(target, f"Removed: {topic_arn}", topic_arn)

    def failed(self, target, kind, message):
        self.log.error(message)
        return Outcome.failed(target, kind, message)

    def run(self, request):
        """
        Plan and apply all changes for custom resource request.

        :param request: `ChangeRequest`

        :return: `Report`
        """
        plan = self.plan(request)
        self.log.info(f"{request}: {plan}")

        report = Report(targets=plan.targets)
        for ref in plan.updates:
            outcome = self.process_update(ref)
            self.log.debug(f"{outcome}")
            report.add(outcome)

        for target in plan.removals:
            outcome = self.process_removal(target)
            self.log.debug(f"{outcome}")
            report.add(outcome)

        self.log.info(f"{report}")
        return report
