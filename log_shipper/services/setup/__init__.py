"""Setup (provisioning) services.

This package contains orchestration helpers that *provision* or *reuse* the Fly
resources log shipping depends on (the log shipper app and machine, the
provider add-on, the shipper's secrets).
"""
