from startup_scraper.cli import main

main()
