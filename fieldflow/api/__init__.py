from .test_client import TestMappingClient, TestMappingRequest, TestMappingResult

__all__ = ["TestMappingClient", "TestMappingRequest", "TestMappingResult"]
