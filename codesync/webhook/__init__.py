# codesync/webhook/__init__.py
from codesync.webhook.ingestor import PushEvent, WebhookDecision, WebhookIngestor
from codesync.webhook.signature import SIGNATURE_HEADER, compute_signature, verify_signature

__all__ = [
    "PushEvent",
    "SIGNATURE_HEADER",
    "WebhookDecision",
    "WebhookIngestor",
    "compute_signature",
    "verify_signature",
]
