"""
osm2s3 Pipeline Components

This module provides the pipeline architecture following the Export → Archive → Upload pattern.

Components:
- export: Exporter running ogr2ogr into an ESRI Shapefile directory
- archive: Archiver packing the directory into a stored zip
- upload: S3Uploader streaming the zip to object storage
- runner: PipelineRunner driving the three steps per configured table
"""

from .archive import Archiver
from .export import Exporter
from .runner import PipelineRunner
from .upload import S3Uploader

__all__ = ["Exporter", "Archiver", "S3Uploader", "PipelineRunner"]
