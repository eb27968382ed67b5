"""
Reader daemon package for the Plugwise-to-InfluxDB pipeline.

Polls a Plugwise Smile P1 gateway over its local HTTP API, extracts the
electricity and gas meter readings, and writes them to InfluxDB on a fixed
schedule.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""
