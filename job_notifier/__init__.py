"""Job-posting notification pipeline.

Publishes newly created job postings to a durable RabbitMQ queue, matches each
posting against every candidate's saved notification filters, and records a
mailbox entry for every match.
"""

__version__ = "1.0.0"
