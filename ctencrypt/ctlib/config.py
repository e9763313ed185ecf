import json
import logging
import os

import botocore.config


DEFAULTS = {
    "log_level": "INFO",
    # role Control Tower creates in every enrolled account
    "role_name": "AWSControlTowerExecution",
    # StackSet with stack instance in every governed account
    "stackset_name": "AWSControlTowerBP-BASELINE-CONFIG",
    "topic_name": "aws-controltower-SecurityNotifications",
    "max_attempts": 10,
}

# option name -> environment variable to override it with
ENVIRONMENT = {
    "log_level": "LOG_LEVEL",
    "role_name": "ROLE_NAME",
    "stackset_name": "STACKSET_NAME",
    "topic_name": "TOPIC_NAME",
    "max_attempts": "MAX_ATTEMPTS",
}


class Config(object):
    """
    Basic class to deal with reconciler configuration.
    Defaults are overridden by local json file, which in its turn is overridden by environment variables.
    """
    def __init__(self, configFile="config.json", environ=None):
        """
        :param configFile: local path to configuration file in json format, can be absent
        :param environ: mapping with environment variables, `os.environ` by default
        """
        environ = os.environ if environ is None else environ

        self._config = dict(DEFAULTS)
        self._config.update(self.json_load_from_file(configFile, default={}))
        for option, variable in ENVIRONMENT.items():
            if environ.get(variable):
                self._config[option] = environ[variable]
        self._region = environ.get("AWS_REGION") or environ.get("AWS_DEFAULT_REGION")

    def __getattr__(self, key):
        """ Search for any attribute in config, if not found - raise exception """
        if key in self.__dict__.get("_config", {}):
            return self._config[key]
        raise AttributeError(f"config has no option '{key}'")

    def json_load_from_file(self, filename, default=None):
        """
        Loads json from config file to dictionary.

        :param filename: file name to load config from
        :param default: default value in case if file was not found/failed to parse

        :return: dict with config file content or default value

        .. note:: can raise exception if file can't be loaded/parsed and default is not set
        """
        try:
            with open(filename, "rb") as fh:
                return json.loads(fh.read())
        except Exception as err:
            if default is not None:
                return default
            else:
                logging.error(f"can't get config from {filename}\n{err}")
                raise

    @property
    def region(self):
        """ :return: AWS region the code is running in (from Lambda environment) or None """
        return self._config.get("region", self._region)

    @property
    def log_level(self):
        """ :return: logging level as int, INFO if level name is unknown """
        level = logging.getLevelName(str(self._config["log_level"]).upper())
        return level if isinstance(level, int) else logging.INFO

    @property
    def max_attempts(self):
        """ :return: int, number of attempts for AWS API calls made by botocore retry handler """
        return int(self._config["max_attempts"])

    @property
    def retry_config(self):
        """ :return: `botocore.config.Config` with bounded number of attempts (first call included) """
        return botocore.config.Config(retries={'total_max_attempts': self.max_attempts})

    @property
    def source(self):
        """ :return: pretty formatted effective config """
        return json.dumps(self._config, indent=4)
