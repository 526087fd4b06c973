"""Transactional email templates and reply-by-email addresses."""
