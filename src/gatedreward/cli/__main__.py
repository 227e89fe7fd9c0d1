from gatedreward.cli.main import main

main()
