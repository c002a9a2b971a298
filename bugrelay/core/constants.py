"""
Constants
Centralised storage for severities, priorities, placeholders and label groups.
"""
UNKNOWN = "Unknown"
UNKNOWN_LOWER = "unknown"
NO_DESCRIPTION = "No description provided"
ANONYMOUS = "Anonymous"
NOT_SET = "Not set"
DEFAULT_TITLE = "Bug Report"
TITLE_PREFIX = "[Bug] "
NAV_SEPARATOR = " -> "
NAVIGATION_TAIL = 5

SEVERITIES = ["critical", "high", "medium", "low"]
DEFAULT_SEVERITY = "medium"

# Linear priority values: 1 urgent, 2 high, 3 normal, 4 low
PRIORITY_BY_SEVERITY = {"critical": 1, "high": 2, "low": 4}
DEFAULT_PRIORITY = 3
PRIORITY_LABELS = {1: "Urgent", 2: "High", 3: "Normal", 4: "Low"}

EMOJI_BY_SEVERITY = {"critical": "\U0001F6A8", "high": "⚠️", "low": "\U0001F4A1"}
DEFAULT_EMOJI = "\U0001F41B"

PLATFORMS = ["ios", "android", "web"]
OPERATING_SYSTEMS = ["iOS", "Android", "macOS", "Windows", "Linux"]
USER_TIERS = ["free", "pro", "max", "creator"]

REPORT_ID_PREFIX = "br_"
DISCORD_RED = 15158332
DISCORD_BLURPLE = 5814783
DISCORD_TITLE_LIMIT = 256
DISCORD_DESCRIPTION_LIMIT = 4096
DISCORD_FIELD_LIMIT = 1024
