from botocore.exceptions import BotoCoreError, ClientError
from boto3.session import Session

from ctlib.results import AccountError, ErrorKind


class AssumeRole(object):
    """
    Exchanges current identity for temporary credentials in target account.
    Credentials are not cached, each call returns new session.
    """
    def __init__(self, context):
        """
        :param context: `RunContext` instance
        """
        self.context = context
        self.role_name = context.config.role_name
        self.sts = context.session.client('sts')
        self._identity = None

    @property
    def identity(self):
        """
        :return: dict with `Account` and `Arn` of the caller

        :raises AccountError: with `ErrorKind.AccessDenied` if caller identity can't be resolved
        """
        if self._identity is None:
            try:
                self._identity = self.sts.get_caller_identity()
            except (ClientError, BotoCoreError) as err:
                self.context.log.error(f"Unable to get caller identity: {err}")
                raise AccountError(ErrorKind.AccessDenied, f"Unable to get caller identity: {err}") from err
        return self._identity

    def current_account_id(self):
        """ Autodetection of current account ID from STS """
        return self.identity['Account']

    def current_partition(self):
        """ :return: partition (aws, aws-cn, aws-us-gov) of the caller ARN """
        return self.identity['Arn'].split(":")[1]

    def role_arn(self, account_id):
        """ Construct role ARN from caller partition, account ID and role name """
        return f"arn:{self.current_partition()}:iam::{account_id}:role/{self.role_name}"

    def session_name(self, account_id):
        """ :return: role session name to audit assumed role usage """
        return f"{account_id}-{self.role_name}"

    def get_creds(self, account_id):
        """
        Assume role in some account and return access credentials (access/secret key and token)

        :param account_id: AWS account Id to assume role in

        :return: dict with access/secret key and token ready to use in `boto3.session.Session`

        :raises AccountError: with `ErrorKind.AccessDenied` if role can't be assumed
        """
        try:
            assume_role = self.sts.assume_role(
                RoleArn=self.role_arn(account_id),
                RoleSessionName=self.session_name(account_id),
            )
        except ClientError as err:
            msg = f"Unable to assume role '{self.role_name}' in {account_id}"
            if err.response['Error']['Code'] in ["AccessDenied", "UnauthorizedOperation"]:
                self.context.log.error(msg + f", access denied (sts:{err.operation_name})")
            else:
                self.context.log.exception(msg)
            raise AccountError(ErrorKind.AccessDenied, f"{msg}: {err}") from err
        except BotoCoreError as err:
            self.context.log.exception(f"Unable to assume role '{self.role_name}' in {account_id}")
            raise AccountError(ErrorKind.AccessDenied, str(err)) from err

        return {'aws_access_key_id': assume_role["Credentials"]["AccessKeyId"],
                'aws_secret_access_key': assume_role["Credentials"]["SecretAccessKey"],
                'aws_session_token': assume_role["Credentials"]["SessionToken"]}

    def get_session(self, account_id):
        """
        For getting boto3 session in:
         * current account - ambient session is returned as is
         * another account - session with assumed role credentials

        :param account_id: AWS account Id to get session for

        :return: boto3.session.Session object
        """
        # do not assume role for current account
        if account_id == self.current_account_id():
            self.context.log.debug(f"Using current session for {account_id}")
            return self.context.session

        creds = self.get_creds(account_id)
        self.context.log.debug(f"Using session for {account_id}, assumed '{self.role_name}'")
        return Session(region_name=self.context.session.region_name, **creds)
