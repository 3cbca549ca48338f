import os

# Relay defaults for tests; individual tests override through monkeypatch
os.environ.setdefault("PRINTER_BRIDGE_SECRET", "test-bridge-secret-0123456789")
os.environ.setdefault("SECRET_KEY", "x" * 32)
os.environ.setdefault("LOG_SAMPLE_2XX", "1")
