"""
Outbound networking.

- http_executor.py: ResilientRequestExecutor (retry / backoff / rate-limit policy) used by
  every external API client
"""
