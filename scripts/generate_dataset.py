"""
Supermarket Sales Dataset Generator
Writes synthetic transactions in the supermarket export layout (CSV)
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from sales_analytics.data import SalesGenerator

OUTPUT_DIR = Path(__file__).parent.parent / "data" / "raw"


# ==========================================
# MAIN
# ==========================================
def main(n: int = 1000, seed: int = 42):
    print("=" * 60)
    print("🛒 Supermarket Sales Dataset Generator")
    print("=" * 60 + "\n")

    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)

    print(f"📊 Generating {n:,} sales transactions...")
    df = SalesGenerator(seed=seed).generate(n)

    path = OUTPUT_DIR / "supermarket_sales.csv"
    df.write_csv(path)

    size = path.stat().st_size / 1024 / 1024
    print(f"   ✅ {path.name}: {len(df):,} rows ({size:.2f} MB)")
    print(f"\n📁 Output: {OUTPUT_DIR}\n")


if __name__ == "__main__":
    main(int(sys.argv[1]) if len(sys.argv) > 1 else 1000)
