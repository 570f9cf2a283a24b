from nanny.cli import main

main()
