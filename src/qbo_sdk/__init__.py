"""Python client for the QuickBooks Online (QBO) v3 accounting API."""
