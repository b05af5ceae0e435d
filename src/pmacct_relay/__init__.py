"""
pmacct_relay

Relay pmacct flow accounting lines from stdin to a time series backend.

Core ideas
1. Parser finds flow records in a noisy text stream
2. Sequencer gives every accepted record a unique, strictly increasing timestamp
3. Emitter turns each record into four point observations for a transport
"""

__all__ = ["core", "transports", "cli"]
