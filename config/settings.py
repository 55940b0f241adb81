"""
Configuration settings for Customer Analysis
"""
import os
from dotenv import load_dotenv

load_dotenv()

# =============================================================================
# Analysis Configuration
# =============================================================================

# Engines tried in this order; first one that answers wins
ENGINE_ORDER = [
    name.strip()
    for name in os.getenv("ENGINE_ORDER", "purchase_history,interest_match,segment_affinity").split(",")
    if name.strip()
]

# What to do with the remaining offers when persisting one fails: "abort" or "continue"
OFFER_FAILURE_POLICY = os.getenv("OFFER_FAILURE_POLICY", "abort")

# Purchase history engine: minimum purchases in the category to count as interested
MIN_CATEGORY_PURCHASES = int(os.getenv("MIN_CATEGORY_PURCHASES", "1"))

# Segment affinity engine: which customer segments like which product categories
SEGMENT_AFFINITY = {
    "outdoor": ["adventurer"],
    "electronics": ["techie"],
    "kitchen": ["homebody"],
    "hobby": ["techie", "general"],
    "garden": ["homebody", "general"],
}

# =============================================================================
# Notification Configuration
# =============================================================================
NEWSLETTER_INTERVAL_DAYS = int(os.getenv("NEWSLETTER_INTERVAL_DAYS", "7"))
NEWSLETTER_WEBHOOK = os.getenv("NEWSLETTER_WEBHOOK", None)

# =============================================================================
# Error Reporting Configuration
# =============================================================================
ALERT_SLACK_WEBHOOK = os.getenv("ALERT_SLACK_WEBHOOK", None)
ALERT_COOLDOWN_SECONDS = int(os.getenv("ALERT_COOLDOWN_SECONDS", "300"))

# =============================================================================
# Observability Configuration
# =============================================================================

# Structured Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("LOG_FORMAT", "json")  # "json" or "console"
LOG_FILE = os.getenv("LOG_FILE", None)

# Prometheus Metrics
METRICS_ENABLED = os.getenv("METRICS_ENABLED", "true").lower() == "true"
METRICS_PORT = int(os.getenv("METRICS_PORT", "9090"))

# =============================================================================
# Retry Configuration
# =============================================================================
ENGINE_RETRY_MAX_ATTEMPTS = int(os.getenv("ENGINE_RETRY_MAX_ATTEMPTS", "3"))
ENGINE_RETRY_MIN_WAIT = float(os.getenv("ENGINE_RETRY_MIN_WAIT", "0.5"))
ENGINE_RETRY_MAX_WAIT = float(os.getenv("ENGINE_RETRY_MAX_WAIT", "10.0"))
