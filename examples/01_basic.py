"""
Basic usage - Login and list files
"""
import asyncio
from icloudpy import ICloudClient


async def main():
    # Session is saved under <tmp>/icloud/<apple id>/ and reused next run
    async with ICloudClient("user@example.com", "password") as icloud:
        await icloud.start()

        drive = await icloud.drive()
        root = await drive.root()
        print(f"Connected! Root: {root.full_name}")

        print("\nFiles in root:")
        for node in await root.children():
            print(f"  {node}")


if __name__ == "__main__":
    asyncio.run(main())
