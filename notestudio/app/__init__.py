"""
App Subpackage

    - cli.py: `notestudio` command (stats, transpose, quantize, add, check-upload)

Usage:
    notestudio --help
    python -m notestudio.app.cli stats song.json
"""
