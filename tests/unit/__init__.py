"""
Unit tests for the HTTP retry layer.

Test individual components in isolation:
- Models (RetryPolicy normalization, RequestConfig, CancelToken)
- Resolver (defaults, overrides, lenient validation)
- Backoff strategies and Retry-After parsing
- Eligibility rules and custom should_retry
- Retry engine (attempt loop, callbacks, cancellation)
- HttpClient and interceptor chain
"""
