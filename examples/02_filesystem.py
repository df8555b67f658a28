"""
Navigate the drive tree
"""
import asyncio
from icloudpy import ICloudClient, NodeNotFoundError


async def main():
    async with ICloudClient("user@example.com") as icloud:
        await icloud.start()
        drive = await icloud.drive()

        # Resolve a path from the root
        try:
            docs = await drive.get_path("/Documents")
        except NodeNotFoundError:
            print("No Documents folder")
            return

        for node in await docs.children():
            size = f"{node.file_size} bytes" if node.is_file else ""
            print(f"  {node} {size}")

        # Children are cached; create a folder and list again
        await docs.mkdir("Reports")
        docs.stale()
        print(await docs.dir())


if __name__ == "__main__":
    asyncio.run(main())
