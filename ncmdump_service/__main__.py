from ncmdump_service.cli import main

main()
