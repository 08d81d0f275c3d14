"""
Message Type Filter - Derives request/response/fault sub-documents.

A combined structure document (e.g. a WSDL-derived message wrapper) holds the
request, response and fault messages as direct children of the root. The
filter keeps only the children whose tag names match the requested kind.
"""

import copy
import logging
from typing import Dict, List

from lxml import etree

from fieldflow.parser.xml_parser import parse_xml_root, local_name

logger = logging.getLogger(__name__)


MESSAGE_TYPES = ("request", "response", "fault")

MESSAGE_PATTERNS: Dict[str, List[str]] = {
    "request": ["_Req_", "Request", "Input", "input"],
    "response": ["_Resp_", "Response", "Output", "output"],
    "fault": ["Fault", "fault", "Error", "error", "Exception"],
}

# Roots that only wrap the actual message
GENERIC_WRAPPERS = {"sourcemessage", "targetmessage", "message", "root"}


def matches_message_type(tag_name: str, message_type: str) -> bool:
    """Check if a tag name contains any pattern of the message type."""
    lowered = tag_name.lower()
    return any(
        pattern in tag_name or pattern.lower() in lowered
        for pattern in MESSAGE_PATTERNS[message_type]
    )


def filter_xml_by_message_type(xml: str, message_type: str) -> str:
    """
    Filter a combined XML document down to one message kind.

    Never raises on document problems: when nothing matches, or the document
    cannot be parsed or rebuilt, the original XML is returned unchanged.

    Args:
        xml: Combined XML document
        message_type: 'request', 'response' or 'fault'

    Returns:
        str: Filtered XML document

    Raises:
        ValueError: If message_type is unknown
    """
    if message_type not in MESSAGE_PATTERNS:
        raise ValueError(f"Unknown message type: {message_type}")

    try:
        root = parse_xml_root(xml)

        new_root = etree.Element(root.tag, attrib=dict(root.attrib), nsmap=root.nsmap)

        for child in root:
            if not isinstance(child.tag, str):
                continue
            if matches_message_type(local_name(child), message_type):
                new_root.append(copy.deepcopy(child))

        matched = len(new_root)

        if matched == 0:
            logger.warning(
                f"No matching elements found for {message_type} mapping, returning original XML"
            )
            return xml

        if matched == 1 and local_name(root).lower() in GENERIC_WRAPPERS:
            logger.debug(f"Promoting {local_name(new_root[0])} to document root")
            return etree.tostring(new_root[0], encoding="unicode", with_tail=False)

        logger.debug(f"Kept {matched} {message_type} element(s) under {local_name(root)}")
        return etree.tostring(new_root, encoding="unicode")

    except Exception as e:
        logger.error(f"Error filtering XML by message type: {e}")
        return xml
