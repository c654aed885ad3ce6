"""REST API for Delvind checkout sessions and Stripe webhooks."""
