"""
Upload files to iCloud Drive
"""
import asyncio
import io
from icloudpy import ICloudClient


async def main():
    async with ICloudClient("user@example.com") as icloud:
        await icloud.start()
        drive = await icloud.drive()
        docs = await drive.get_path("/Documents")

        # Upload a local file
        result = await docs.upload("report.pdf")
        print(f"Uploaded: {result.name} ({result.size} bytes)")

        # Upload from a stream
        data = b"hello from icloudpy\n"
        result = await docs.put_stream(io.BytesIO(data), "hello.txt", len(data))
        print(f"Uploaded: {result.name} as {result.document_id}")

        # Uploads are visible after a fresh listing
        docs.stale()
        print(await docs.dir())


if __name__ == "__main__":
    asyncio.run(main())
