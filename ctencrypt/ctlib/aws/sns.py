from botocore.exceptions import BotoCoreError, ClientError

from ctlib.results import AccountError, ErrorKind


class SNSOperations(object):
    @staticmethod
    def topic_arn(region, account_id, topic_name, partition="aws"):
        """ Construct SNS topic ARN from its parts """
        return f"arn:{partition}:sns:{region}:{account_id}:{topic_name}"

    @staticmethod
    def set_kms_master_key(sns_client, topic_arn, key_id):
        """
        Set (or remove if `key_id` is empty) KMS key used for topic server-side encryption.

        :param sns_client: SNS boto3 client
        :param topic_arn: SNS topic ARN
        :param key_id: KMS key ARN, empty string to restore default encryption

        :return: nothing
        """
        sns_client.set_topic_attributes(
            TopicArn=topic_arn,
            AttributeName='KmsMasterKeyId',
            AttributeValue=key_id
        )


class SNSTopic(object):
    """
    Control Tower security notifications topic in target account/region.
    Encapsulates topic ARN and its current KMS key.
    """
    def __init__(self, session, context, account_id, region, partition="aws"):
        """
        :param session: `boto3.session.Session` in target account
        :param context: `RunContext` instance
        :param account_id: AWS account Id the topic is in
        :param region: AWS region the topic is in
        :param partition: AWS partition to build topic ARN for
        """
        self.session = session
        self.context = context
        self.account_id = account_id
        self.region = region
        self.arn = SNSOperations.topic_arn(region, account_id, context.config.topic_name, partition)
        # value of `KmsMasterKeyId` attribute, known only after `validate`
        self.kms_master_key_id = None

    def __str__(self):
        return f"{self.__class__.__name__}(Arn={self.arn}, KmsMasterKeyId={self.kms_master_key_id})"

    def client(self):
        return self.session.client('sns', region_name=self.region, config=self.context.retry_config)

    def validate(self):
        """
        Validate if the SNS topic exists and accessible

        :return: topic attributes

        :raises AccountError: with `ErrorKind.ValidationFailed` if topic can't be described
        """
        try:
            attributes = self.client().get_topic_attributes(TopicArn=self.arn)["Attributes"]
        except (ClientError, BotoCoreError) as err:
            raise AccountError(ErrorKind.ValidationFailed, f"Error validating SNS topic: {err}") from err

        self.kms_master_key_id = attributes.get('KmsMasterKeyId', "")
        self.context.log.debug(f"Validated {self}")
        return attributes

    def _set(self, key_id):
        try:
            SNSOperations.set_kms_master_key(self.client(), self.arn, key_id)
        except (ClientError, BotoCoreError) as err:
            self.context.log.error(f"Failed to set KmsMasterKeyId to '{key_id}' for {self.arn}")
            raise AccountError(ErrorKind.MutationFailed, str(err)) from err

    def set_kms_key(self, key_id):
        """
        Update SNS topic with KMS encryption

        :param key_id: KMS key ARN

        :return: topic ARN
        """
        if self.kms_master_key_id == key_id:
            self.context.log.info(f"Topic {self.arn} is already encrypted with {key_id}, reapplying")
        self.context.log.info(f'Setting KmsMasterKeyId to: "{key_id}" for topic: {self.arn}')
        self._set(key_id)
        self.kms_master_key_id = key_id
        return self.arn

    def clear_kms_key(self):
        """
        Remove KMS encryption from SNS topic by setting KmsMasterKeyId to empty

        :return: topic ARN
        """
        self.context.log.info(f'Removing KMS encryption from topic: {self.arn}')
        self._set("")
        self.kms_master_key_id = ""
        return self.arn
