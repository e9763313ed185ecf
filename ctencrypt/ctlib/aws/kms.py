from botocore.exceptions import BotoCoreError, ClientError

from ctlib.results import AccountError, ErrorKind


# the only key spec SNS server-side encryption works with
SNS_KEY_SPEC = "SYMMETRIC_DEFAULT"


class KMSKeyValidator(object):
    """
    Checks that KMS key can be used for SNS topic encryption in target account.
    """
    def __init__(self, session, context):
        """
        :param session: `boto3.session.Session` in target account
        :param context: `RunContext` instance
        """
        self.session = session
        self.context = context

    def describe(self, region, key_id):
        """
        :return: dict with KMS key metadata

        :raises AccountError: with `ErrorKind.ValidationFailed` if key can't be described
        """
        kms_client = self.session.client("kms", region_name=region)
        try:
            return kms_client.describe_key(KeyId=key_id)["KeyMetadata"]
        except ClientError as err:
            error_code = err.response['Error']['Code']
            if error_code == 'NotFoundException':
                message = f"KMS key {key_id} not found in account"
            elif error_code in ['AccessDeniedException', 'AccessDenied']:
                message = f"No permission to access KMS key {key_id}"
            else:
                message = f"Error validating KMS key: {err}"
            raise AccountError(ErrorKind.ValidationFailed, message) from err
        except BotoCoreError as err:
            raise AccountError(ErrorKind.ValidationFailed, f"Error validating KMS key: {err}") from err

    def validate(self, region, key_id):
        """
        Validate if the KMS key exists, is enabled and symmetric

        :param region: region the key is in
        :param key_id: KMS key ARN

        :return: dict with KMS key metadata

        :raises AccountError: with `ErrorKind.ValidationFailed` and human readable reason
        """
        metadata = self.describe(region, key_id)

        if not metadata.get('Enabled', False):
            raise AccountError(ErrorKind.ValidationFailed, f"KMS key {key_id} is disabled")

        # `CustomerMasterKeySpec` is deprecated name of `KeySpec`
        key_spec = metadata.get('KeySpec', metadata.get('CustomerMasterKeySpec'))
        if key_spec != SNS_KEY_SPEC:
            raise AccountError(ErrorKind.ValidationFailed, f"KMS key {key_id} is not a symmetric key")

        self.context.log.debug(f"KMS key {key_id} is valid ({metadata.get('KeyState')}, {key_spec})")
        return metadata
