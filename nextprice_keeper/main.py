from __future__ import annotations

from nextprice_keeper.config import load_settings
from nextprice_keeper.runtime.app import run_main


def main() -> None:
    run_main(load_settings())


if __name__ == "__main__":
    main()
