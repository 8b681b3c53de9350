"""Run the image-tool command line tool with `python -m image_tool`."""

from image_tool.tool.image_tool import main

if __name__ == "__main__":
    main()
