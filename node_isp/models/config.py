"""Configuration models for Node ISP."""

from typing import List

from pydantic import BaseModel, Field


class TLSConfig(BaseModel):
    """Certificate settings for the public domains."""
    email: str = ""


class HTTPServerConfig(BaseModel):
    """Public HTTP(S) endpoint configuration."""
    domains: List[str] = Field(..., min_length=1, description="Public domains, the first is the app domain")
    tls: TLSConfig = Field(default_factory=TLSConfig)


class LicenceConfig(BaseModel):
    """Licence key pair passed to the app server."""
    id: str = ""
    key: str = ""


class StorageConfig(BaseModel):
    """Host directories for persistent data and logs."""
    data: str = "/var/lib/node-isp/"
    logs: str = "/var/log/node-isp/"


class AppConfig(BaseModel):
    """Application server settings."""
    name: str = "Node ISP"
    key: str = ""


class DatabaseConfig(BaseModel):
    """Postgres settings."""
    name: str = "nodeisp"
    password: str = ""


class RedisConfig(BaseModel):
    """Redis settings."""
    password: str = ""


class ServicesConfig(BaseModel):
    """Third-party service credentials."""
    google_maps_api_key: str = ""


class NodeISPConfig(BaseModel):
    """Top-level configuration file."""
    http: HTTPServerConfig
    licence: LicenceConfig = Field(default_factory=LicenceConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    app: AppConfig = Field(default_factory=AppConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    redis: RedisConfig = Field(default_factory=RedisConfig)
    services: ServicesConfig = Field(default_factory=ServicesConfig)

    @property
    def app_domain(self) -> str:
        return self.http.domains[0]
