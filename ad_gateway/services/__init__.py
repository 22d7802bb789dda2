from .accounts import DirectoryAccountGateway, gateway_from_env

__all__ = ["DirectoryAccountGateway", "gateway_from_env"]
