# SPDX-License-Identifier: MIT
"""Allow running srcbld as "python -m srcbld"."""

import sys

from srcbld.cli import main

sys.exit(main())
