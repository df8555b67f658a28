"""
Download files from iCloud Drive
"""
import asyncio
from icloudpy import ICloudClient


async def main():
    async with ICloudClient("user@example.com") as icloud:
        await icloud.start()
        drive = await icloud.drive()

        node = await drive.get_path("/Documents/report.pdf")

        # Download to a local path
        path = await node.download("report.pdf")
        print(f"Downloaded to: {path}")

        # Stream the content
        async with await node.open() as stream:
            total = 0
            async for chunk in stream.iter_chunks():
                total += len(chunk)
            print(f"Read {total} bytes")


if __name__ == "__main__":
    asyncio.run(main())
