import json
import logging

from enum import Enum

import requests

from ctlib.arn import split_key_ids


# name of custom resource property with comma-separated KMS key ARNs
KEYS_PROPERTY = "KMSKeyId"


class RequestType(Enum):
    Create = "Create"
    Update = "Update"
    Delete = "Delete"


class ChangeRequest(object):
    """
    CloudFormation custom resource request.
    Python representation of the event Lambda is invoked with.
    """
    def __init__(self, request_type, key_ids, old_key_ids=None,
                 response_url=None, stack_id=None, request_id=None,
                 logical_resource_id=None, physical_resource_id=None):
        """
        :param request_type: `RequestType`
        :param key_ids: list with KMS key ARNs from `ResourceProperties`
        :param old_key_ids: list with KMS key ARNs from `OldResourceProperties`, None if event has no old properties
        """
        self.request_type = request_type
        self.key_ids = key_ids
        self.old_key_ids = old_key_ids
        self.response_url = response_url
        self.stack_id = stack_id
        self.request_id = request_id
        self.logical_resource_id = logical_resource_id
        self.physical_resource_id = physical_resource_id

    @classmethod
    def from_event(cls, event):
        """
        :param event: dict with custom resource event

        :return: `ChangeRequest`

        :raises ValueError: if event has unknown request type or no resource properties
        """
        if 'ResourceProperties' not in event:
            raise ValueError("Missing ResourceProperties in event")

        try:
            request_type = RequestType(event.get('RequestType'))
        except ValueError:
            raise ValueError(f"Unsupported RequestType '{event.get('RequestType')}'") from None

        old_key_ids = None
        if 'OldResourceProperties' in event:
            old_key_ids = split_key_ids(event['OldResourceProperties'].get(KEYS_PROPERTY))

        return cls(request_type=request_type,
                   key_ids=split_key_ids(event['ResourceProperties'].get(KEYS_PROPERTY)),
                   old_key_ids=old_key_ids,
                   response_url=event.get('ResponseURL'),
                   stack_id=event.get('StackId'),
                   request_id=event.get('RequestId'),
                   logical_resource_id=event.get('LogicalResourceId'),
                   physical_resource_id=event.get('PhysicalResourceId'))

    def __str__(self):
        old = f", Old={len(self.old_key_ids)}" if self.old_key_ids is not None else ""
        return (f"{self.__class__.__name__}("
                f"Type={self.request_type.value}, "
                f"Keys={len(self.key_ids)}{old})")


def response_body(event, context, status, data, physical_resource_id=None, reason=None):
    """
    :return: dict with custom resource response
    """
    log_stream_name = getattr(context, "log_stream_name", "")
    return {
        'Status': status,
        'Reason': reason or f"See the details in CloudWatch Log Stream: {log_stream_name}",
        'PhysicalResourceId': physical_resource_id or event.get('PhysicalResourceId') or log_stream_name,
        'StackId': event.get('StackId'),
        'RequestId': event.get('RequestId'),
        'LogicalResourceId': event.get('LogicalResourceId'),
        'NoEcho': False,
        'Data': data,
    }


def send(event, context, status, data, physical_resource_id=None, reason=None, timeout=30):
    """
    Send custom resource response to pre-signed S3 URL from event.

    :param event: dict with custom resource event
    :param context: Lambda context
    :param status: `ResponseStatus.SUCCESS` or `ResponseStatus.FAILED`
    :param data: dict with response data (available via Fn::GetAtt)

    :return: boolean, True - if response was delivered
    """
    response_url = event.get('ResponseURL')
    if not response_url:
        logging.error("Can't send response, no ResponseURL in event")
        return False

    body = json.dumps(response_body(event, context, status, data, physical_resource_id, reason))
    logging.debug(f"Response body:\n{body}")

    headers = {
        'content-type': '',
        'content-length': str(len(body))
    }
    try:
        response = requests.put(response_url, data=body, headers=headers, timeout=timeout)
        response.raise_for_status()
    except requests.exceptions.RequestException:
        logging.exception(f"Failed to send {status} response to CloudFormation")
        return False

    logging.info(f"Status code: {response.status_code}")
    return True
