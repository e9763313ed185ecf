import logging


from ctlib.arn import MalformedIdentifier
from ctlib.logger import set_logging
from ctlib.config import Config
from ctlib.context import RunContext
from ctlib.cfnresponse import ChangeRequest, send
from ctlib.processor import TopicEncryptionProcessor
from ctlib.results import ResponseStatus
from ctlib.utility import jsonDumps


def lambda_handler(event, context):
    """ Lambda handler to set/remove KMS encryption of Control Tower security notifications topics """
    config = Config()
    set_logging(level=config.log_level)

    try:
        logging.info(f"Event:\n{jsonDumps(event)}")
        logging.debug(f"Config:\n{config.source}")

        request = ChangeRequest.from_event(event)
        processor = TopicEncryptionProcessor(RunContext(config))
        report = processor.run(request)
    except MalformedIdentifier as err:
        logging.error(f"Request rejected ({err.kind.value}): {err}")
        send(event, context, ResponseStatus.FAILED, {'Error': str(err)})
        return
    except Exception as err:
        logging.exception(f"Unexpected error: {err}")
        send(event, context, ResponseStatus.FAILED, {'Error': str(err)})
        return

    send(event, context, report.status, report.as_response_data())
