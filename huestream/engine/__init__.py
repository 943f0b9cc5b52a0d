"""
Streaming engine: color encoding, frame layout, DTLS transport and REST control.
"""
