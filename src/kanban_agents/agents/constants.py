"""Tuning constants shared by the agents."""


class Temperature:
    FACTUAL = 0.2
    CONSISTENT = 0.3
    BALANCED = 0.4
    MEDIUM = 0.5
    CREATIVE = 0.7


class Confidence:
    LOW = 0.3
    MEDIUM = 0.5
    MEDIUM_HIGH = 0.6
    HIGH = 0.7
    VERY_HIGH = 0.8
    EXCELLENT = 0.85
    MAXIMUM = 0.95


WEB_CONTENT_MAX = 5000
LARGE_CONTENT_TRUNCATE = 10000
MIN_EXTRACTION_LENGTH = 200
MIN_CONTENT_FOR_SUMMARIZATION = 500
SUMMARY_MAX_WORDS = 1000
ORCHESTRATOR_SUMMARY_WORDS = 500

MAX_TITLE_LENGTH = 500
MAX_DESCRIPTION_LENGTH = 10000
MAX_CONTENT_LENGTH = 100000
MAX_URL_LENGTH = 2048
MAX_TAG_LENGTH = 50
MAX_TAG_COUNT = 20

TRUNCATION_MARKER = "\n\n[Content truncated for processing]"
