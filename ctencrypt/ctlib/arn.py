from collections import namedtuple

from ctlib.results import ErrorKind


class MalformedIdentifier(ValueError):
    """ KMS key identifier can't be parsed as `arn:partition:kms:region:account-id:key/key-id` """
    kind = ErrorKind.MalformedIdentifier


class AccountRegion(namedtuple("AccountRegion", ["account_id", "region"])):
    """
    Composite key for (account, region) pair.
    Used to deduplicate desired and previous KMS key lists.
    """
    __slots__ = ()

    def __str__(self):
        return f"{self.account_id}/{self.region}"


class KeyReference(namedtuple("KeyReference", ["region", "account_id", "key_id"])):
    """
    KMS key ARN parsed into region and account.
    `key_id` is the original (trimmed) ARN and is used verbatim as `KmsMasterKeyId` value.
    """
    __slots__ = ()

    @property
    def target(self):
        """ :return: `AccountRegion` this key belongs to """
        return AccountRegion(self.account_id, self.region)

    @staticmethod
    def compose(region, account_id, key, partition="aws"):
        """ Construct KMS key ARN from its parts """
        return f"arn:{partition}:kms:{region}:{account_id}:key/{key}"

    def __str__(self):
        return f"{self.__class__.__name__}(Account={self.account_id}, Region={self.region}, Key={self.key_id})"


def parse_key_arn(value):
    """
    Parse KMS key ARN to extract account ID and region

    :param value: KMS key ARN, leading/trailing whitespaces are ignored

    :return: `KeyReference`

    :raises MalformedIdentifier: if value is empty or does not have exactly 6 colon-separated parts
    """
    arn = value.strip() if isinstance(value, str) else ""
    if not arn:
        raise MalformedIdentifier("Invalid KMS ARN format: empty value")

    # expected format: arn:aws:kms:region:account-id:key/key-id
    parts = arn.split(':')
    if len(parts) != 6:
        raise MalformedIdentifier(f"Invalid KMS ARN format: {arn}")

    return KeyReference(region=parts[3], account_id=parts[4], key_id=arn)


def split_key_ids(text):
    """
    Split comma-separated list of KMS key ARNs (as it comes in `KMSKeyId` resource property).

    :param text: string with comma-separated ARNs, can be None

    :return: list with trimmed non-empty ARNs
    """
    if not text:
        return []
    return [arn.strip() for arn in text.split(',') if arn.strip()]
