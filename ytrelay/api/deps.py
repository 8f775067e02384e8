from fastapi import Request
from ytrelay.services.ytdlp import Downloader

def get_downloader(request: Request) -> Downloader:
    """Downloader handle injected at app construction"""
    return request.app.state.downloader
