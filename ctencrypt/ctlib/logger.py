import logging


def get_formatter(level):
    """
    :param level: logging level

    :return: logging.Formatter with string based on logging level
    """
    if level == logging.DEBUG:
        return logging.Formatter("[%(levelname)s]\t%(asctime)s\t%(filename)s:%(funcName)s:%(lineno)d\t%(message)s")
    else:
        return logging.Formatter("[%(levelname)s]\t%(asctime)s.%(msecs)dZ\t%(message)s")


def set_logging(level=logging.INFO):
    """
    Set root logger level and handler, reusing Lambda handler if present.

    :param level: default logging level

    :return: logging class instance
    """
    logger = logging.getLogger()
    logger.setLevel(level)
    logformatter = get_formatter(level)

    # running not in lambda - add stdout log
    if len(logger.handlers) == 0:
        loghandler = logging.StreamHandler()
        loghandler.setFormatter(logformatter)
        logger.addHandler(loghandler)
    # replace formatter for lambda debugging
    elif logger.handlers[0].__class__.__name__ == "LambdaLoggerHandler" and \
         level == logging.DEBUG:
        # default lambda formatter: [%(levelname)s]	%(asctime)s.%(msecs)dZ	%(aws_request_id)s	%(message)s
        logger.handlers[0].setFormatter(logformatter)

    # suppress messages from external libraries
    for name in ('boto3', 'botocore', 's3transfer', 'requests', 'urllib3.connectionpool', 'urllib3.util.retry'):
        logging.getLogger(name).setLevel(logging.CRITICAL)

    return logger
