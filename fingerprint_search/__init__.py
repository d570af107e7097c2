"""
fingerprint_search — Brightness and color-histogram image similarity search.

Indexes images by two cheap fingerprints, a per-channel intensity
histogram and an average brightness, and ranks a stored corpus by
similarity to a query image.

Modules:
    engine         Main SearchEngine class
    pixel_buffer   Byte/unit pixel buffers and sample conversion
    brightness     Per-pixel luma and average brightness
    histograms     Per-channel histograms, sequential and parallel
    similarity     Normalization and cosine / brightness similarity
    scoring        Composite score and ranking
    fingerprint    Per-image index record
    store          JSON corpus store
    preprocessing  Image decoding into pixel buffers
    index_builder  Batch indexing of files and directories
    workers        Bounded fan-out/fan-in thread pool
    errors         Exception types
"""

__version__ = "1.0.0"
