from jenkins_indicator.main import main

main()
