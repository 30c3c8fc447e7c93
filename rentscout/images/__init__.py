"""Listing image acquisition and enhancement."""

from .image_pipeline import ImageAsset, ImageAssetPipeline, ImageOrigin, ImageStatus, describe_listing

__all__ = ['ImageAsset', 'ImageAssetPipeline', 'ImageOrigin', 'ImageStatus', 'describe_listing']
