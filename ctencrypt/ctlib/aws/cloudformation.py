from botocore.exceptions import BotoCoreError, ClientError

from ctlib.results import ErrorKind


class StackSetMembership(object):
    """
    Checks if account is governed by Control Tower,
    i.e. has stack instance of Control Tower baseline StackSet.
    """
    def __init__(self, context):
        """
        :param context: `RunContext` instance
        """
        self.context = context
        self.stackset_name = context.config.stackset_name
        self.cfn = context.session.client('cloudformation', config=context.retry_config)

    def is_member(self, account_id):
        """
        :param account_id: AWS account Id to check

        :return: boolean, True - if StackSet has at least one stack instance in account,
                          False - otherwise or if StackSet instances can't be listed
        """
        try:
            paginator = self.cfn.get_paginator('list_stack_instances')
            page_iterator = paginator.paginate(StackSetName=self.stackset_name,
                                               StackInstanceAccount=account_id)
            for page in page_iterator:
                if page['Summaries']:
                    return True
            return False
        except (ClientError, BotoCoreError) as err:
            if isinstance(err, ClientError) and \
               err.response['Error']['Code'] in ["AccessDenied", "AccessDeniedException"]:
                self.context.log.error(f"Access denied while checking {account_id} in StackSet "
                                       f"'{self.stackset_name}' (cloudformation:{err.operation_name})")
            else:
                self.context.log.error(f"Error checking account {account_id} in StackSet "
                                       f"'{self.stackset_name}' ({ErrorKind.MembershipQueryError.value}): {err}")
            return False
