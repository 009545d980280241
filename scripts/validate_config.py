#!/usr/bin/env python3
"""Configuration validation script."""

import sys
from pathlib import Path
from typing import Optional

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from peakbot.config.loader import ConfigLoader
from peakbot.config.validation import ConfigValidator, ValidationError


def validate_config_dir(config_dir: Optional[Path] = None) -> list[ValidationError]:
    """Validate the merged configuration found in ``config_dir``."""
    loader = ConfigLoader.create(config_dir)
    config = loader.merge_config()
    return ConfigValidator.validate_config(config)


def main():
    """Main validation function."""
    config_dir = Path(sys.argv[1]) if len(sys.argv) > 1 else None
    print("🔍 Validating PeakBot configuration...")

    all_valid = True

    try:
        errors = validate_config_dir(config_dir)
        if errors:
            print(f"❌ Found {len(errors)} validation errors:")
            for error in errors:
                print(f"  • {error.field}: {error.message} (value: {error.value})")
            all_valid = False
        else:
            print("✅ trading.yaml configuration is valid")
    except Exception as e:
        print(f"❌ Error loading configuration: {e}")
        all_valid = False

    # Runtime overrides are validated the same way as file values
    print("\n📋 Testing runtime overrides...")
    test_overrides = {
        "trading": {
            "buy_threshold": 1.5,
            "max_positions": 6,
        }
    }

    try:
        config = ConfigLoader.create(config_dir).merge_config(test_overrides)
        errors = ConfigValidator.validate_config(config)
        if errors:
            print("❌ Override validation failed:")
            for error in errors:
                print(f"  • {error.field}: {error.message}")
            all_valid = False
        else:
            print("✅ Override validation passed")
    except Exception as e:
        print(f"❌ Error testing overrides: {e}")
        all_valid = False

    if all_valid:
        print("\n🎉 All configuration validation passed!")
        sys.exit(0)
    else:
        print("\n❌ Configuration validation failed!")
        sys.exit(1)


if __name__ == "__main__":
    main()
