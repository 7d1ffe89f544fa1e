#!/usr/bin/env python3
"""
Command-line picker client.

Usage:
    python -m client sign-in --token <google-access-token>
    python -m client pick [--download DIR]
    python -m client sign-out
"""

import argparse
import asyncio
import mimetypes
import sys
from pathlib import Path

from core.config import settings
from core.logging_config import configure_logging

from .credential_store import FileCredentialStore
from .metadata import format_table, metadata_rows
from .picker_flow import FlowState, PickerFlow
from .proxy_client import THUMBNAIL_SIZE, PickerProxyClient


def _announce(state: FlowState, flow: PickerFlow) -> None:
    if state is FlowState.CREATING_SESSION:
        print("🔄 Creating picker session...")
    elif state is FlowState.POLLING and flow.session is not None:
        print("📷 Open Google Photos to pick your media:")
        print(f"   {flow.session.pickerUri}")
        print("   This will continue automatically when you've completed your selection.")
    elif state is FlowState.LISTING:
        print("🔄 Selection complete, loading media items...")


def _target_path(directory: Path, index: int, item, content_type) -> Path:
    """Download target inside ``directory``; the index prefix keeps names unique."""
    name = Path(item.mediaFile.filename or "").name
    if name in ("", ".", ".."):
        extension = mimetypes.guess_extension(content_type or "") or ""
        name = f"item{extension}"
    return directory / f"{index:03d}-{name}"


async def run_pick(args) -> int:
    credentials = FileCredentialStore(args.credentials)
    async with PickerProxyClient(base_url=args.proxy_url) as client:
        flow = PickerFlow(client, credentials, page_size=args.page_size)
        flow.add_listener(_announce)
        flow.start()
        try:
            state = await flow.wait()
        finally:
            await flow.stop()

        if state is FlowState.SIGNED_OUT:
            print("🔒 Not signed in. Run `python -m client sign-in --token ...` first.")
            if flow.error:
                print(f"   {flow.error}")
            return 2
        if state is FlowState.FAILED:
            print(f"❌ Error: {flow.error}")
            return 1

        if not flow.items:
            print("No media items were found for this session. Did you pick any?")
            return 0

        print(f"✅ {len(flow.items)} media item(s) picked\n")
        download_dir = Path(args.download) if args.download else None
        if download_dir is not None:
            download_dir.mkdir(parents=True, exist_ok=True)

        token = credentials.get()
        for index, item in enumerate(flow.items, start=1):
            if download_dir is not None:
                detail = await flow.open_item(item)
                print(format_table(detail.rows))
                if detail.error:
                    print(f"   ❌ {detail.error}")
                elif detail.content is not None:
                    target = _target_path(download_dir, index, item, detail.content.content_type)
                    target.write_bytes(detail.content.data)
                    print(f"   💾 Saved to {target}")
            else:
                print(format_table(metadata_rows(item)))
            thumbnail_url = client.media_url(token, item, size=THUMBNAIL_SIZE) if token else None
            if thumbnail_url:
                print(f"   🖼  Thumbnail: {thumbnail_url}")
            print()
    return 0


def main():
    """Main CLI interface"""
    parser = argparse.ArgumentParser(description="Google Photos Picker EXIF viewer")
    parser.add_argument("--proxy-url", default=settings.client.proxy_base_url, help="Picker proxy base URL")
    parser.add_argument("--credentials", default=settings.client.credential_path, help="Credential file path")
    parser.add_argument("--verbose", action="store_true", help="Show debug logs")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    sign_in_parser = subparsers.add_parser("sign-in", help="Store a Google access token")
    sign_in_parser.add_argument("--token", required=True, help="OAuth access token with photospicker scope")

    subparsers.add_parser("sign-out", help="Forget the stored access token")

    pick_parser = subparsers.add_parser("pick", help="Pick media and show its metadata")
    pick_parser.add_argument("--download", help="Directory to save full-resolution media into")
    pick_parser.add_argument("--page-size", type=int, default=None, help="Items per listing page")

    args = parser.parse_args()
    configure_logging("DEBUG" if args.verbose else "WARNING")

    if not args.command:
        parser.print_help()
        return 1

    credentials = FileCredentialStore(args.credentials)
    if args.command == "sign-in":
        credentials.set(args.token)
        print(f"✅ Access token stored in {args.credentials}")
        return 0
    if args.command == "sign-out":
        credentials.clear()
        print("👋 Signed out")
        return 0
    if args.command == "pick":
        return asyncio.run(run_pick(args))

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
