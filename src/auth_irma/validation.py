"""
Validation of IRMA session results.

A raw result is first classified by its session and proof status. Only a
finished session with a valid proof gets its disclosed attributes cross-checked
against the requested logical attributes:

    ============  ===========  ==================
    status        proofStatus  outcome
    ============  ===========  ==================
    CANCELLED     any          SessionCancelled
    TIMEOUT       any          SessionTimedOut
    DONE          VALID        cross-check
    DONE          other        InvalidProof
    INITIALIZED   any          SessionIncomplete
    PAIRING       any          SessionIncomplete
    CONNECTED     any          SessionIncomplete
    ============  ===========  ==================
"""

from __future__ import annotations

from collections.abc import Sequence

from .attributes import AttributeMapper
from .exceptions import (
    InvalidProof,
    InvalidResponse,
    ResponseMismatch,
    SessionCancelled,
    SessionIncomplete,
    SessionTimedOut,
)
from .irma import DisclosedAttribute, ProofStatus, RawSessionResult, SessionStatus


def classify_session(result: RawSessionResult) -> list[list[DisclosedAttribute]]:
    """
    Return the disclosed groups of a completed, valid session.

    Raises:
        SessionCancelled, SessionTimedOut, InvalidProof, SessionIncomplete
    """
    if result.status is SessionStatus.CANCELLED:
        raise SessionCancelled()
    if result.status is SessionStatus.TIMEOUT:
        raise SessionTimedOut()
    if result.status is SessionStatus.DONE:
        if result.proof_status is ProofStatus.VALID:
            return result.disclosed
        raise InvalidProof()
    raise SessionIncomplete()


def map_response(
    mapper: AttributeMapper,
    attributes: Sequence[str],
    disclosed: Sequence[Sequence[DisclosedAttribute]],
) -> dict[str, str]:
    """
    Match disclosed groups to the requested attributes by position.

    Each group must hold exactly one attribute whose identifier is configured
    for the logical attribute requested at the same position. Anything else
    is rejected, including a valid identifier disclosed for the wrong slot.
    """
    if len(attributes) != len(disclosed):
        raise ResponseMismatch()
    if len(set(attributes)) != len(attributes):
        raise ResponseMismatch("duplicate attribute in request")

    # Check every group before building the result
    for attribute, group in zip(attributes, disclosed):
        if len(group) != 1:
            raise InvalidResponse("Incorrect number of attributes in inner conjunction")
        if group[0].id not in mapper.identifiers(attribute):
            raise InvalidResponse("Incorrect attribute in inner conjunction")

    return {attribute: group[0].rawvalue for attribute, group in zip(attributes, disclosed)}


def validate_result(
    mapper: AttributeMapper, attributes: Sequence[str], result: RawSessionResult
) -> dict[str, str]:
    """Classify ``result`` and, when it is a valid disclosure, map it to attribute values."""
    return map_response(mapper, attributes, classify_session(result))
