from enum import Enum


class ErrorKind(Enum):
    # KMS key ARN failed to parse, fatal for the whole run
    MalformedIdentifier = "malformed_identifier"
    # StackSet instances listing failed, account is treated as not a member
    MembershipQueryError = "membership_query_error"
    # role in target account can't be assumed
    AccessDenied = "access_denied"
    # KMS key or SNS topic is missing/unusable in target account
    ValidationFailed = "validation_failed"
    # setting topic attribute failed after all retries
    MutationFailed = "mutation_failed"


class OutcomeStatus(Enum):
    Success = "success"
    # account is not governed by Control Tower StackSet
    Skipped = "skipped"
    Failed = "failed"


class ResponseStatus(object):
    """ Custom resource response statuses """
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class AccountError(Exception):
    """ Per-account failure, never aborts processing of other accounts """
    def __init__(self, kind, message):
        super().__init__(message)
        self.kind = kind
        self.message = message


class Outcome(object):
    """
    Result of processing single (account, region) pair.
    """
    def __init__(self, status, account_id, region, message="", topic_arn=None, error=None):
        self.status = status
        self.account_id = account_id
        self.region = region
        self.message = message
        self.topic_arn = topic_arn
        self.error = error

    @classmethod
    def success(cls, target, message, topic_arn):
        return cls(OutcomeStatus.Success, target.account_id, target.region, message, topic_arn=topic_arn)

    @classmethod
    def skipped(cls, target, message):
        return cls(OutcomeStatus.Skipped, target.account_id, target.region, message)

    @classmethod
    def failed(cls, target, kind, message):
        return cls(OutcomeStatus.Failed, target.account_id, target.region, message, error=kind)

    @property
    def ok(self):
        return self.status == OutcomeStatus.Success

    def __str__(self):
        topic = f", Topic={self.topic_arn}" if self.topic_arn else ""
        error = f", Error={self.error.value}" if self.error else ""
        return (f"{self.__class__.__name__}("
                f"Account={self.account_id}, "
                f"Region={self.region}, "
                f"Status={self.status.value}{topic}{error})")


class Report(object):
    """
    Aggregated result of the whole run.
    Best effort: run is successful if at least one account was processed or there was nothing to do.
    """
    def __init__(self, targets=0):
        # number of (account, region) pairs in reconciliation plan
        self.targets = targets
        self.success_count = 0
        self.processed_topics = []
        self.errors = []
        self.skipped = []

    def add(self, outcome):
        """ Fold per-account `Outcome` into report """
        if outcome.status == OutcomeStatus.Success:
            self.success_count += 1
            self.processed_topics.append(outcome.message)
        elif outcome.status == OutcomeStatus.Skipped:
            self.skipped.append(outcome.account_id)
        else:
            self.errors.append(outcome.message)

    @property
    def status(self):
        if self.success_count > 0 or self.targets == 0:
            return ResponseStatus.SUCCESS
        return ResponseStatus.FAILED

    def as_response_data(self):
        """ :return: dict to send back as custom resource `Data` """
        data = {
            'SuccessCount': self.success_count,
            'ProcessedTopics': self.processed_topics,
        }
        if self.errors:
            data['Errors'] = self.errors
        return data

    def __str__(self):
        return (f"{self.__class__.__name__}("
                f"Status={self.status}, "
                f"Targets={self.targets}, "
                f"Succeeded={self.success_count}, "
                f"Skipped={len(self.skipped)}, "
                f"Failed={len(self.errors)})")
