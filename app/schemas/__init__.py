"""
Schemas Module
==============

This module provides Pydantic models for request/response validation.
Schemas ensure data integrity and provide automatic validation.
"""

from app.schemas.feeders import FeederCreateSchema, FeederUpdateSchema
from app.schemas.feeding import FeedingScheduleCreateSchema, FeedingSessionSchema, ManualFeedSchema
from app.schemas.sensor_data import SensorDataQuerySchema, SensorReadingBatchSchema, SensorReadingSchema

__all__ = [
    "FeederCreateSchema",
    "FeederUpdateSchema",
    "FeedingScheduleCreateSchema",
    "FeedingSessionSchema",
    "ManualFeedSchema",
    "SensorDataQuerySchema",
    "SensorReadingBatchSchema",
    "SensorReadingSchema",
]
