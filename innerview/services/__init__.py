"""Business logic services: notifications, email, webhooks, LTI, LMS sync and dashboards."""
