from prometheus_client import Counter, Histogram

# Prometheus metrics
REQS         = Counter("requests_total", "Total requests", ["route"])
LAT_STREAM   = Histogram("stream_latency_ms", "Model stream latency (ms)", ["feature"])
FRAGMENTS    = Counter("stream_fragments_total", "Text fragments received from the model", ["feature"])
STREAM_ERRS  = Counter("stream_errors_total", "Model streams that ended in an error", ["feature"])
