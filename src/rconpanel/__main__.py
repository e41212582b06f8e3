from rconpanel.cli import main

main()
