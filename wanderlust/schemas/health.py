"""
Wanderlust Backend - Health Check Schema
=========================================

What:  JSON body returned by GET /health (the only non-HTML endpoint).
Who:   Docker health checks and load balancer probes.
"""

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy or unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
