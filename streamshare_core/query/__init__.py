from streamshare_core.query.videos import LIST_PAGE_SIZE, VideoQuery

__all__ = ["LIST_PAGE_SIZE", "VideoQuery"]
