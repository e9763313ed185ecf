import logging
import os

import boto3
import pytest

from moto import mock_aws
from ctlib.config import Config
from ctlib.context import RunContext
from ctlib.logger import set_logging


region = "us-east-1"
# account moto runs all calls in by default
current_account = "123456789012"


def pytest_sessionstart(session):
    if session.config.option.verbose > 2:
        set_logging(level=logging.DEBUG)

    # never let tests reach real AWS
    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_SECURITY_TOKEN"] = "testing"
    os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = region


@pytest.fixture
def aws():
    """ Fresh moto backends for each test """
    with mock_aws():
        yield


@pytest.fixture
def config():
    return Config(configFile="nonexistent.json", environ={"AWS_DEFAULT_REGION": region})


@pytest.fixture
def context(config):
    return RunContext(config, session=boto3.session.Session(region_name=region))
