from dataclasses import dataclass
from typing import Optional
from redis.asyncio import Redis

@dataclass
class RuntimeState:
    """Process-wide connections shared by every app instance"""
    redis: Optional[Redis] = None

state = RuntimeState()
