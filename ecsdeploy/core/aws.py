from typing import Optional, cast

import boto3


boto3_session: Optional[boto3.session.Session] = None


def build_boto3_session(
    region: Optional[str],
    boto3_session_override: boto3.session.Session = None
) -> None:
    """
    Build a boto3 session object bound to ``region`` and save it in the global
    variable :py:data:`boto3_session`, so every ECS call in this run talks to the
    same region.  Credentials come from the normal boto3 resolution chain.

    Args:
        region: the AWS region our cluster lives in.  If ``None``, let boto3
            figure out the region from the environment.

    Keyword Args:
        boto3_session_override: if not None, use this boto3 session object instead of
            building a new one
    """
    global boto3_session  # pylint: disable=global-statement
    if boto3_session_override:
        boto3_session = boto3_session_override
    else:
        boto3_session = boto3.session.Session(region_name=region)


def get_boto3_session(
    boto3_session_override: boto3.session.Session = None
) -> boto3.session.Session:
    """
    Get the boto3 session object that we've built, or the one that was passed in
    by ``boto3_session_override``.  This is the function that all the rest of
    our code should use to get the boto3 session object.

    Important:

        You should have called :py:func:`build_boto3_session` before calling this
        function.

    Args:
        boto3_session_override: if not None, use this boto3 session object instead of
            the one we built.

    Returns:
        The boto3 session object.
    """
    if boto3_session_override:
        return boto3_session_override
    if boto3_session:
        return boto3_session
    return cast(boto3.session.Session, boto3)
