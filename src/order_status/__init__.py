"""Slack bot that looks up Shopify orders mentioned in chat and replies with a status summary."""
