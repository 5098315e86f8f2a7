from .webhook_idempotency import WebhookIdempotencyService

__all__ = ["WebhookIdempotencyService"]
