"""
Video publishing to the social networks' own APIs.

Every publisher returns a ``PublishResult``; vendor and transport errors are folded
into ``success=False`` so the caller can record the attempt either way.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Tuple

import httpx

from marketing_factory.db.enums import SocialPlatformEnum
from marketing_factory.services.vendor_http import (
    VendorConfigError,
    VendorRequestError,
    raise_request_error,
    request_json,
)

logger = logging.getLogger(__name__)

GRAPH_API_BASE = "https://graph.facebook.com/v19.0"
TIKTOK_API_BASE = "https://open.tiktokapis.com/v2"
LINKEDIN_API_BASE = "https://api.linkedin.com/v2"
TWITTER_UPLOAD_URL = "https://upload.twitter.com/1.1/media/upload.json"
TWITTER_API_BASE = "https://api.twitter.com/2"

_UPLOAD_TIMEOUT_SECONDS = 120.0


@dataclass
class SocialCredentials:
    access_token: str
    refresh_token: Optional[str] = None
    account_id: Optional[str] = None


@dataclass
class PublishOptions:
    video_url: str
    title: str
    description: str
    hashtags: List[str] = field(default_factory=list)
    thumbnail_url: Optional[str] = None


@dataclass
class PublishResult:
    success: bool
    platform: SocialPlatformEnum
    post_id: Optional[str] = None
    post_url: Optional[str] = None
    error: Optional[str] = None


def format_hashtags(tags: List[str]) -> str:
    cleaned = (str(tag).strip().lstrip("#") for tag in tags)
    return " ".join(f"#{tag}" for tag in cleaned if tag)


def _caption(options: PublishOptions) -> str:
    parts = [options.title, options.description, format_hashtags(options.hashtags)]
    return "\n\n".join(part for part in parts if part)


class SocialPublisher:
    def __init__(
        self,
        *,
        transport: Optional[httpx.BaseTransport] = None,
        sleep: Callable[[float], None] = time.sleep,
        instagram_poll_interval_seconds: float = 5.0,
        instagram_poll_attempts: int = 30,
    ) -> None:
        self._transport = transport
        self._sleep = sleep
        self.instagram_poll_interval_seconds = instagram_poll_interval_seconds
        self.instagram_poll_attempts = instagram_poll_attempts

    def publish(
        self,
        platform: SocialPlatformEnum,
        credentials: SocialCredentials,
        options: PublishOptions,
    ) -> PublishResult:
        publishers = {
            SocialPlatformEnum.instagram: self._publish_instagram,
            SocialPlatformEnum.tiktok: self._publish_tiktok,
            SocialPlatformEnum.linkedin: self._publish_linkedin,
            SocialPlatformEnum.twitter: self._publish_twitter,
        }
        platform = SocialPlatformEnum(platform)
        try:
            post_id, post_url = publishers[platform](credentials, options)
        except (VendorConfigError, VendorRequestError) as exc:
            logger.warning("Social publish failed", extra={"platform": platform.value, "error": str(exc)})
            return PublishResult(success=False, platform=platform, error=str(exc))
        logger.info("Video published", extra={"platform": platform.value, "post_id": post_id})
        return PublishResult(success=True, platform=platform, post_id=post_id, post_url=post_url)

    # HTTP helpers

    def _json(self, method: str, url: str, *, vendor: str, **kwargs: Any) -> dict[str, Any]:
        return request_json(method, url, vendor=vendor, transport=self._transport, **kwargs)

    def _send(self, method: str, url: str, *, vendor: str, **kwargs: Any) -> httpx.Response:
        try:
            with httpx.Client(
                timeout=_UPLOAD_TIMEOUT_SECONDS, transport=self._transport, follow_redirects=True
            ) as client:
                resp = client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise VendorRequestError(f"{method} {url} failed: {exc}", vendor=vendor) from exc
        if resp.status_code >= 400:
            raise_request_error(resp, vendor=vendor)
        return resp

    def _download(self, url: str, *, vendor: str) -> bytes:
        if not url:
            raise VendorRequestError("Video has no file URL", vendor=vendor)
        return self._send("GET", url, vendor=vendor).content

    # Instagram (Graph API reels)

    def _publish_instagram(self, credentials: SocialCredentials, options: PublishOptions) -> Tuple[str, str]:
        if not credentials.account_id:
            raise VendorConfigError("Instagram connection has no account id")
        container = self._json(
            "POST",
            f"{GRAPH_API_BASE}/{credentials.account_id}/media",
            vendor="instagram",
            json_payload={
                "video_url": options.video_url,
                "caption": _caption(options),
                "media_type": "REELS",
                "access_token": credentials.access_token,
            },
        )
        container_id = container.get("id")
        if not container_id:
            raise VendorRequestError("Container creation returned no id", vendor="instagram", details=container)

        status = "IN_PROGRESS"
        attempts = 0
        while status == "IN_PROGRESS" and attempts < self.instagram_poll_attempts:
            self._sleep(self.instagram_poll_interval_seconds)
            data = self._json(
                "GET",
                f"{GRAPH_API_BASE}/{container_id}",
                vendor="instagram",
                params={"fields": "status_code", "access_token": credentials.access_token},
            )
            status = str(data.get("status_code") or "")
            attempts += 1
        if status != "FINISHED":
            raise VendorRequestError(f"Video processing failed with status: {status}", vendor="instagram")

        published = self._json(
            "POST",
            f"{GRAPH_API_BASE}/{credentials.account_id}/media_publish",
            vendor="instagram",
            json_payload={"creation_id": container_id, "access_token": credentials.access_token},
        )
        post_id = str(published.get("id") or "")
        if not post_id:
            raise VendorRequestError("Publish returned no media id", vendor="instagram", details=published)
        return post_id, f"https://www.instagram.com/reel/{post_id}/"

    # TikTok (Content Posting API, pulled from URL)

    def _publish_tiktok(self, credentials: SocialCredentials, options: PublishOptions) -> Tuple[Optional[str], None]:
        description = " ".join(part for part in (options.description, format_hashtags(options.hashtags)) if part)
        data = self._json(
            "POST",
            f"{TIKTOK_API_BASE}/post/publish/video/init/",
            vendor="tiktok",
            headers={
                "Authorization": f"Bearer {credentials.access_token}",
                "Content-Type": "application/json; charset=UTF-8",
            },
            json_payload={
                "post_info": {
                    "title": options.title,
                    "description": description,
                    # Posted privately; the account owner changes visibility in the app.
                    "privacy_level": "SELF_ONLY",
                    "disable_duet": False,
                    "disable_comment": False,
                    "disable_stitch": False,
                },
                "source_info": {"source": "PULL_FROM_URL", "video_url": options.video_url},
            },
        )
        publish_id = (data.get("data") or {}).get("publish_id")
        return publish_id, None

    # LinkedIn (UGC posts)

    def _linkedin_headers(self, credentials: SocialCredentials) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {credentials.access_token}",
            "Content-Type": "application/json",
            "X-Restli-Protocol-Version": "2.0.0",
        }

    def _publish_linkedin(self, credentials: SocialCredentials, options: PublishOptions) -> Tuple[str, str]:
        if not credentials.account_id:
            raise VendorConfigError("LinkedIn connection has no account id")
        author = f"urn:li:person:{credentials.account_id}"
        registered = self._json(
            "POST",
            f"{LINKEDIN_API_BASE}/assets",
            vendor="linkedin",
            params={"action": "registerUpload"},
            headers=self._linkedin_headers(credentials),
            json_payload={
                "registerUploadRequest": {
                    "recipes": ["urn:li:digitalmediaRecipe:feedshare-video"],
                    "owner": author,
                    "serviceRelationships": [
                        {"relationshipType": "OWNER", "identifier": "urn:li:userGeneratedContent"}
                    ],
                }
            },
        )
        value = registered.get("value") or {}
        mechanism = (value.get("uploadMechanism") or {}).get(
            "com.linkedin.digitalmedia.uploading.MediaUploadHttpRequest"
        ) or {}
        upload_url = mechanism.get("uploadUrl")
        asset = value.get("asset")
        if not upload_url or not asset:
            raise VendorRequestError("Failed to get upload URL from LinkedIn", vendor="linkedin", details=registered)

        video = self._download(options.video_url, vendor="linkedin")
        self._send(
            "PUT",
            upload_url,
            vendor="linkedin",
            content=video,
            headers={
                "Authorization": f"Bearer {credentials.access_token}",
                "Content-Type": "application/octet-stream",
            },
        )

        post = self._json(
            "POST",
            f"{LINKEDIN_API_BASE}/ugcPosts",
            vendor="linkedin",
            headers=self._linkedin_headers(credentials),
            json_payload={
                "author": author,
                "lifecycleState": "PUBLISHED",
                "specificContent": {
                    "com.linkedin.ugc.ShareContent": {
                        "shareCommentary": {"text": _caption(options)},
                        "shareMediaCategory": "VIDEO",
                        "media": [
                            {
                                "status": "READY",
                                "media": asset,
                                "title": {"text": options.title},
                                "description": {"text": options.description},
                            }
                        ],
                    }
                },
                "visibility": {"com.linkedin.ugc.MemberNetworkVisibility": "PUBLIC"},
            },
        )
        post_id = str(post.get("id") or "")
        if not post_id:
            raise VendorRequestError("Post creation returned no id", vendor="linkedin", details=post)
        return post_id, f"https://www.linkedin.com/feed/update/{post_id}/"

    # Twitter / X (chunked media upload, single segment)

    def _publish_twitter(self, credentials: SocialCredentials, options: PublishOptions) -> Tuple[str, str]:
        auth = {"Authorization": f"Bearer {credentials.access_token}"}
        video = self._download(options.video_url, vendor="twitter")

        init_resp = self._send(
            "POST",
            TWITTER_UPLOAD_URL,
            vendor="twitter",
            headers=auth,
            data={
                "command": "INIT",
                "total_bytes": str(len(video)),
                "media_type": "video/mp4",
                "media_category": "tweet_video",
            },
        )
        try:
            init = init_resp.json()
        except ValueError as exc:
            raise VendorRequestError("Non-JSON media upload init response", vendor="twitter") from exc
        media_id = init.get("media_id_string")
        if not media_id:
            raise VendorRequestError("Media upload init returned no media id", vendor="twitter", details=init)

        self._send(
            "POST",
            TWITTER_UPLOAD_URL,
            vendor="twitter",
            headers=auth,
            data={"command": "APPEND", "media_id": media_id, "segment_index": "0"},
            files={"media": ("video.mp4", video, "video/mp4")},
        )
        self._send(
            "POST",
            TWITTER_UPLOAD_URL,
            vendor="twitter",
            headers=auth,
            data={"command": "FINALIZE", "media_id": media_id},
        )

        text = "\n\n".join(part for part in (options.title, format_hashtags(options.hashtags)) if part)
        tweet = self._json(
            "POST",
            f"{TWITTER_API_BASE}/tweets",
            vendor="twitter",
            headers={**auth, "Content-Type": "application/json"},
            json_payload={"text": text, "media": {"media_ids": [media_id]}},
        )
        tweet_id = str((tweet.get("data") or {}).get("id") or "")
        if not tweet_id:
            raise VendorRequestError("Tweet creation returned no id", vendor="twitter", details=tweet)
        return tweet_id, f"https://twitter.com/i/status/{tweet_id}"
