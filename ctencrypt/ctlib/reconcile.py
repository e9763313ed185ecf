import logging


from ctlib.arn import parse_key_arn


class ReconciliationPlan(object):
    """
    Result of comparing desired and previous KMS key lists.
    Encapsulates keys to apply and (account, region) pairs to clear encryption for.
    """
    def __init__(self, updates=None, removals=None):
        """
        :param updates: list of `KeyReference` to set on topics
        :param removals: list of `AccountRegion` to remove topic encryption from
        """
        self.updates = list(updates or [])
        self.removals = list(removals or [])

    @property
    def targets(self):
        """ :return: total number of (account, region) pairs to process """
        return len(self.updates) + len(self.removals)

    def __eq__(self, other):
        if not isinstance(other, ReconciliationPlan):
            return NotImplemented
        return self.updates == other.updates and self.removals == other.removals

    def __str__(self):
        updates = ", ".join(str(ref.target) for ref in self.updates)
        removals = ", ".join(str(pair) for pair in self.removals)
        return f"{self.__class__.__name__}(Updates=[{updates}], Removals=[{removals}])"


def _keyed_by_target(key_ids):
    """
    :return: dict {`AccountRegion`: `KeyReference`}, later ARNs overwrite earlier ones for the same pair
    """
    keys = {}
    for arn in key_ids or []:
        if not arn or not arn.strip():
            continue
        ref = parse_key_arn(arn)
        keys[ref.target] = ref
    return keys


def accounts_to_remove(previous):
    """
    Extract unique (account, region) pairs from KMS ARNs.
    First occurrence wins, order of first appearance is preserved.

    :param previous: list with KMS key ARNs

    :return: list of `AccountRegion`
    """
    pairs = []
    for arn in previous or []:
        if not arn or not arn.strip():
            continue
        pair = parse_key_arn(arn).target
        if pair not in pairs:
            pairs.append(pair)
    return pairs


def plan_updates(desired, previous=None):
    """
    Determine which accounts need updates or removals

    :param desired: list with KMS key ARNs to apply
    :param previous: list with KMS key ARNs which were applied before, can be None

    :return: `ReconciliationPlan`

    .. note:: (account, region) pair from `desired` never goes to removals,
              even if it was present in `previous` with another key.
    """
    new_keys = _keyed_by_target(desired)
    old_keys = _keyed_by_target(previous)

    removals = [pair for pair in old_keys if pair not in new_keys]
    plan = ReconciliationPlan(updates=new_keys.values(), removals=removals)
    logging.getLogger("ctlib").debug(f"Reconciled {plan}")
    return plan


def plan_delete(previous):
    """
    Stack is being deleted, so encryption must be removed from all previously configured topics.

    :param previous: list with KMS key ARNs which were applied before

    :return: `ReconciliationPlan` without updates
    """
    return ReconciliationPlan(removals=accounts_to_remove(previous))
