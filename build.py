#!/usr/bin/env python3
from sitebuild.cli import main

if __name__ == "__main__":
    main()
