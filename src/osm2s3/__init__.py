"""osm2s3: export OSM road tables per country with ogr2ogr and publish them to S3."""

__version__ = "0.1.0"
