import logging

from boto3.session import Session


class RunContext(object):
    """
    Everything components need for a single invocation:
    configuration, session of the account the code is running in and logger.
    """
    def __init__(self, config, session=None, log=None):
        """
        :param config: `Config` instance
        :param session: `boto3.session.Session` for current (management) account, created if omitted
        :param log: logger to use, `ctlib` logger if omitted
        """
        self.config = config
        self.session = session if session is not None else Session(region_name=config.region)
        self.log = log if log is not None else logging.getLogger("ctlib")

    @property
    def retry_config(self):
        """ :return: `botocore.config.Config` for clients which must retry on throttling/transient errors """
        return self.config.retry_config

    def __str__(self):
        return (f"{self.__class__.__name__}("
                f"Region={self.session.region_name}, "
                f"Role={self.config.role_name}, "
                f"StackSet={self.config.stackset_name}, "
                f"MaxAttempts={self.config.max_attempts})")
